class FileVaultError(Exception):
    """Base class for every error raised by filevault."""


class UnsupportedCipherOrKeyLength(FileVaultError, ValueError):
    def __init__(self, message=None):
        super().__init__(
            message
            or "The only supported ciphers are AES-128-CBC and AES-256-CBC "
               "with the correct key lengths."
        )


class StreamOpenFailure(FileVaultError):
    def __init__(self, path, reason=None):
        self.path = path
        message = f"Can not open file located at path {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class FileNotFound(StreamOpenFailure):
    def __init__(self, path):
        super().__init__(path, "file does not exist")


class StreamReadFailure(FileVaultError):
    pass


class StreamWriteFailure(FileVaultError):
    pass


class DecryptionFailure(FileVaultError):
    pass


class MetadataUnavailable(FileVaultError):
    def __init__(self, path, reason=None):
        self.path = path
        super().__init__(f"Unable to retrieve metadata for {path}: {reason}")


class DeleteFileFailure(FileVaultError):
    def __init__(self, path, reason=None):
        self.path = path
        super().__init__(f"Unable to delete file at {path}: {reason}")


class DiskNotConfigured(FileVaultError):
    pass


class SameSourceAndDestination(FileVaultError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"Source and destination are the same file: {path}")
