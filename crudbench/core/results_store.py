"""
Results Store

Persists result documents as JSON under a results directory and reads
them back for the comparison reporter.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from crudbench.core.errors import MissingResultsError, PersistenceError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ResultsStore:
    """
    File-backed store for result documents.

    Writes are atomic: the document is written to a temporary file in the
    same directory and moved into place, so a reader never sees a partial
    document.
    """

    def __init__(self, results_dir: Path | str):
        self.results_dir = Path(results_dir)

    def path_for(self, filename: str) -> Path:
        return self.results_dir / filename

    def write_document(self, filename: str, document: BaseModel) -> Path:
        """Serialize a pydantic document and persist it."""
        return self.write_json(filename, document.model_dump(mode="json"))

    def write_json(self, filename: str, payload: Any) -> Path:
        """
        Persist a JSON-serializable payload.

        Raises:
            PersistenceError: the directory or file could not be written.
        """
        target = self.path_for(filename)
        try:
            self.results_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.results_dir, prefix=f".{filename}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                    f.write("\n")
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(
                f"Failed to write results to {target}: {e}",
                hint="Check that the results directory exists and is writable.",
            ) from e

        logger.info(f"💾 Results saved to {target}")
        return target

    def read_json(self, filename: str, hint: Optional[str] = None) -> Any:
        """
        Load a previously persisted payload.

        Raises:
            MissingResultsError: the file does not exist or is not valid JSON.
        """
        target = self.path_for(filename)
        if not target.is_file():
            raise MissingResultsError(f"Results file not found: {target}", hint=hint)
        try:
            with target.open("r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise MissingResultsError(
                f"Results file {target} is not valid JSON: {e}", hint=hint
            ) from e

    def read_document(
        self, filename: str, model: Type[ModelT], hint: Optional[str] = None
    ) -> ModelT:
        """Load and validate a persisted document."""
        payload = self.read_json(filename, hint=hint)
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise MissingResultsError(
                f"Results file {self.path_for(filename)} is malformed: {e}", hint=hint
            ) from e
