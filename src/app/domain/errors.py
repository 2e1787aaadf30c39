from __future__ import annotations


class GenerationError(Exception):
    pass


class GenerationSchemaError(GenerationError):
    def __init__(self, message: str = "Generated recipe is missing required fields", missing_fields: list[str] | None = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []


class DuplicateRecipeError(GenerationError):
    def __init__(self, title: str, attempts: int = 1):
        if attempts > 1:
            message = f"could not generate a unique recipe after {attempts} attempts (last title: {title})"
        else:
            message = f"Recipe too similar to existing content: {title}"
        super().__init__(message)
        self.title = title
        self.attempts = attempts


class GenerationQuotaError(GenerationError):
    def __init__(self, message: str = "Text generation quota exhausted"):
        super().__init__(message)


class ImageProductionError(Exception):
    def __init__(self, stage: str, reason: str):
        super().__init__(f"Image production failed during {stage}: {reason}")
        self.stage = stage
        self.reason = reason


class StorageError(Exception):
    pass


class StorageUploadError(StorageError):
    def __init__(self, object_key: str, reason: str = "Upload failed"):
        super().__init__(f"Failed to upload {object_key}: {reason}")
        self.object_key = object_key
        self.reason = reason


class PersistenceError(Exception):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Persistence error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class SlugConflictError(PersistenceError):
    def __init__(self, slug: str):
        super().__init__("create", f"slug already taken: {slug}")
        self.slug = slug


class InvalidSettingsError(ValueError):
    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid setting {field}: {reason}")
        self.field = field
        self.reason = reason
