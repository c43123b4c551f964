from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class BaseTool(ABC):
    """Base class for class-based tools.

    Subclasses declare ``NAME``, ``DESCRIPTION`` and optionally
    ``PARAMETERS`` (a JSON Schema object).  Without ``PARAMETERS`` the
    schema and argument validation come from the ``execute`` signature.
    """

    NAME: str  # Unique name for the tool
    DESCRIPTION: str  # Description shown to the model
    PARAMETERS: Optional[Dict[str, Any]] = None  # JSON schema for arguments

    @abstractmethod
    def execute(self, **kwargs: Any) -> Any:
        """Execute the tool logic; may be a coroutine function."""
        raise NotImplementedError

    @classmethod
    def from_config(cls, **config: Any) -> "BaseTool":
        """Instantiate the tool with optional config."""
        return cls(**config)
