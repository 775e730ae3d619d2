"""Pipeline error types"""


class PipelineError(Exception):
    """Base class for errors that abort a whole pipeline run."""


class PipelineCancelledError(PipelineError):
    def __init__(self, message: str = "Operation cancelled"):
        super().__init__(message)


class SlugCollisionError(PipelineError):
    """Several notes of one flattened folder map to the same route."""

    def __init__(self, folder_id: str, route: str, paths: list[str]):
        self.folder_id = folder_id
        self.route = route
        self.paths = sorted(paths)
        super().__init__(
            f"Slug collision detected: {len(self.paths)} notes map to the same route "
            f"\"{route}\" in flattened folder '{folder_id}'. "
            f"Conflicting files: {', '.join(self.paths)}. "
            "Please rename one of the files or disable flatten_tree for this folder."
        )
