"""Exception types raised by File Scavenger."""


class ScavengerError(Exception):
    """Base class for all File Scavenger errors."""


class ProjectRootError(ScavengerError):
    """Raised when no usable project root is available for a scan."""

    def __init__(self, project_root):
        self.project_root = project_root
        super().__init__(f"Project root does not exist or is not a directory: {project_root}")


class RestoreError(ScavengerError):
    """Raised when a trashed file cannot be restored."""
