"""Interface for interacting with the user (input/output).

Defines the contract for displaying results, statistics, errors and
warnings, and for getting input from the user, allowing different UI
implementations (e.g., console, test doubles).
"""

import abc
from typing import Any, Mapping

class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: Any, **kwargs: Any) -> None:
        """Displays a result value to the user.

        Args:
            output: The value to display (rendered as JSON when structured).
            **kwargs: Additional arguments for formatting (e.g., title).
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user.

        Args:
            warning_message: The warning message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user.

        Args:
            info_message: The informational message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_stats(self, stats: Mapping[str, Any], **kwargs: Any) -> None:
        """Displays cache statistics.

        Args:
            stats: Mapping of counter names to values.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def get_prompt(self, prompt_message: str = "> ") -> str:
        """Gets input from the user synchronously.

        Note: For async contexts, the caller should wrap this in asyncio.to_thread.

        Args:
            prompt_message: The message to display before the input prompt.

        Returns:
            The user's input.
        """
        pass
