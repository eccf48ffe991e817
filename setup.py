"""
Setup script for TFBS Cluster Enrichment package.
"""

from setuptools import setup, find_packages

# Read README file
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Read requirements
with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="tfbs-enrichment",
    version="0.1.0",
    author="TFBS Enrichment Team",
    description="Over-representation analysis of transcription factor binding site clusters",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["tfbs_enrichment", "tfbs_enrichment.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    keywords="bioinformatics, transcription factor, binding sites, enrichment, statistics",
)
