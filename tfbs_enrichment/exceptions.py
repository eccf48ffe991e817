"""
Custom exception classes for tfbs_enrichment.

Validation and provider failures abort an analyzer call; a cluster that is
present in one matrix but missing from its counterpart is *not* an error and
is recorded as a :class:`~tfbs_enrichment.results.records.DataAbsence`
instead.
"""

from typing import Optional, Sequence


class TFBSEnrichmentError(Exception):
    """Base exception for all tfbs_enrichment errors."""
    pass


# ============================================================================
# Input / validation errors
# ============================================================================

class ValidationError(TFBSEnrichmentError):
    """Raised when input data fails validation checks."""
    pass


class ClusterMismatchError(ValidationError):
    """Raised when target and background do not share the same ordered cluster IDs."""

    def __init__(self, bg_cluster_ids: Sequence[str], t_cluster_ids: Sequence[str]):
        if len(bg_cluster_ids) != len(t_cluster_ids):
            detail = (
                f"background has {len(bg_cluster_ids)} clusters, "
                f"target has {len(t_cluster_ids)}"
            )
        else:
            detail = "cluster IDs differ"
            for idx, (bg_id, t_id) in enumerate(zip(bg_cluster_ids, t_cluster_ids)):
                if bg_id != t_id:
                    detail = f"cluster {idx + 1} differs: {bg_id} != {t_id}"
                    break
        super().__init__(
            f"Background and target do not have the same TFBS clusters: {detail}"
        )
        self.bg_cluster_ids = list(bg_cluster_ids)
        self.t_cluster_ids = list(t_cluster_ids)


class InvalidParameterError(ValidationError):
    """Raised when a parameter value is out of valid range."""

    def __init__(self, param: str, value, valid_range: str = ""):
        msg = f"Invalid value for '{param}': {value!r}"
        if valid_range:
            msg += f". Expected: {valid_range}"
        super().__init__(msg)
        self.param = param
        self.value = value


class DuplicateResultError(ValidationError):
    """Raised when a result with an already stored ID is added to a result set."""

    def __init__(self, result_id: str):
        super().__init__(f"Result with ID {result_id} already exists in set")
        self.result_id = result_id


class FileFormatError(TFBSEnrichmentError):
    """Raised when an exchange file has an unexpected or invalid format."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


# ============================================================================
# Statistics provider errors
# ============================================================================

class ExternalProviderFailure(TFBSEnrichmentError):
    """Raised when a statistics provider fails or returns no usable output."""

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        details = [message]
        if command:
            details.append(f"command: {' '.join(command)}")
        if returncode is not None:
            details.append(f"exit status: {returncode}")
        if stderr:
            details.append(f"stderr:\n{stderr.strip()}")
        super().__init__("\n".join(details))
        self.command = list(command) if command else None
        self.returncode = returncode
        self.stderr = stderr
