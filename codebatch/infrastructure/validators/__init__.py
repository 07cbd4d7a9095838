"""Step validators - confirm that stage artifacts exist on disk."""

from codebatch.infrastructure.validators.base import StepValidator
from codebatch.infrastructure.validators.fixed_file_set import FixedFileSetValidator
from codebatch.infrastructure.validators.folder_content import FolderContentValidator
from codebatch.infrastructure.validators.module_folder import ModuleFolderValidator

__all__ = [
    "FixedFileSetValidator",
    "FolderContentValidator",
    "ModuleFolderValidator",
    "StepValidator",
]
