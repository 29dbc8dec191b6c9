"""
File Validator for Package Upload

Checks a content package before any network call is made. There is no
upper size limit: large files go straight to storage.
"""

import os
from pathlib import Path
from typing import Dict, Iterable, Optional

from .models import ValidationResult


class FileValidator:
    """Validates a content package before upload"""

    DEFAULT_EXTENSIONS = [".zepeto"]

    def __init__(self, allowed_extensions: Optional[Iterable[str]] = None, max_file_size: Optional[int] = None):
        extensions = self.DEFAULT_EXTENSIONS if allowed_extensions is None else allowed_extensions
        self.allowed_extensions = [self._normalize_extension(e) for e in extensions]
        self.max_file_size = max_file_size

    def validate_metadata(self, file_name: str, file_size: int) -> ValidationResult:
        """Validate the name and size reported by the caller"""
        if not file_name or not file_name.strip():
            return ValidationResult(
                is_valid=False,
                error_message="File name is required",
                validation_type="name"
            )

        if file_size is None or file_size <= 0:
            return ValidationResult(
                is_valid=False,
                error_message="File is empty",
                file_path=file_name,
                validation_type="size"
            )

        if self.max_file_size is not None and file_size > self.max_file_size:
            size_mb = file_size / (1024 * 1024)
            max_mb = self.max_file_size / (1024 * 1024)
            return ValidationResult(
                is_valid=False,
                error_message=f"File size {size_mb:.2f}MB exceeds maximum {max_mb:.2f}MB",
                file_path=file_name,
                validation_type="size"
            )

        return self.validate_file_format(file_name)

    def validate_file_format(self, file_name: str) -> ValidationResult:
        """Verify file extension"""
        if not self.allowed_extensions:
            return ValidationResult(is_valid=True)

        suffix = Path(file_name).suffix.lower()
        if suffix not in self.allowed_extensions:
            return ValidationResult(
                is_valid=False,
                error_message=f"Invalid file extension. Allowed: {', '.join(self.allowed_extensions)}",
                file_path=file_name,
                validation_type="format"
            )
        return ValidationResult(is_valid=True)

    def validate_file(self, file_path: str) -> ValidationResult:
        """Validate a file on disk"""
        if not os.path.isfile(file_path):
            return ValidationResult(
                is_valid=False,
                error_message=f"File not found: {file_path}",
                file_path=file_path,
                validation_type="existence"
            )
        return self.validate_metadata(os.path.basename(file_path), os.path.getsize(file_path))

    def get_file_summary(self, file_path: str) -> Dict:
        """Get summary information about a file"""
        if not os.path.exists(file_path):
            return {"exists": False, "error": "File not found"}

        stat = os.stat(file_path)
        path = Path(file_path)
        return {
            "exists": True,
            "name": path.name,
            "extension": path.suffix,
            "size_bytes": stat.st_size,
            "size_mb": stat.st_size / (1024 * 1024),
            "is_valid_format": self.validate_file_format(path.name).is_valid,
        }

    @staticmethod
    def _normalize_extension(extension: str) -> str:
        extension = extension.strip().lower()
        return extension if extension.startswith(".") else f".{extension}"
