"""
Standard exit codes for releasegit commands.

Following Unix/POSIX conventions for command-line tools.
"""

GENERAL_ERROR = 1        # General errors

# Application-specific exit codes (64-113 are typically available)
CATALOG_ERROR = 64       # Release list could not be read
NETWORK_ERROR = 68       # Archive download failed
DATA_ERROR = 70          # Archive malformed or unsupported
STORE_ERROR = 72         # Object store read/write failed
DUPLICATE_TAG = 73       # Release tag exists but was not pre-resolved
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT) or cancelled

# Exit code mappings for releasegit errors
EXCEPTION_EXIT_CODES = {
    'CatalogError': CATALOG_ERROR,
    'ArchiveFetchError': NETWORK_ERROR,
    'ArchiveReadError': DATA_ERROR,
    'UnsupportedEntryKind': DATA_ERROR,
    'StoreError': STORE_ERROR,
    'StoreReadError': STORE_ERROR,
    'StoreWriteError': STORE_ERROR,
    'DuplicateTagError': DUPLICATE_TAG,
    'RunCancelled': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)
