"""
Error handling and logging utilities for the CHIP-8 Emulator.

This module provides a standardized approach for reporting virtual machine
errors, configuring logging, and keeping a bounded history of what went wrong
during a run.
"""

import logging
import sys
import os
import traceback
import json
import datetime
from typing import Dict, List, Any, Optional, Callable
from enum import Enum, auto
import threading
from functools import wraps
import inspect

from ..common.exceptions import (
    Chip8Error, RomTooLarge, AddressOutOfRange, StackOverflow, StackUnderflow,
    UnknownInstruction
)

# Configure base logger
logger = logging.getLogger("Chip8Emulator")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

class ErrorLevel(Enum):
    """Error severity levels."""
    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()

class ErrorCategory(Enum):
    """Categories of errors."""
    SYSTEM = auto()
    CONFIGURATION = auto()
    ROM = auto()
    MEMORY = auto()
    STACK = auto()
    INSTRUCTION = auto()
    INPUT = auto()
    UNKNOWN = auto()

_EXCEPTION_CATEGORIES = [
    (RomTooLarge, ErrorCategory.ROM),
    (AddressOutOfRange, ErrorCategory.MEMORY),
    (StackOverflow, ErrorCategory.STACK),
    (StackUnderflow, ErrorCategory.STACK),
    (UnknownInstruction, ErrorCategory.INSTRUCTION),
    (Chip8Error, ErrorCategory.SYSTEM),
]

def category_for_exception(exception: BaseException) -> ErrorCategory:
    """
    Map an exception to its error category.

    Args:
        exception: Exception object

    Returns:
        Matching category, UNKNOWN for non-emulator exceptions
    """
    for exc_type, category in _EXCEPTION_CATEGORIES:
        if isinstance(exception, exc_type):
            return category
    return ErrorCategory.UNKNOWN

class ErrorHandler:
    """
    Centralized error handling and logging for the CHIP-8 Emulator.

    Captures errors with their level, category and context, logs them, keeps
    a bounded history and dispatches them to per-category handlers.
    """

    def __init__(self,
                log_file: Optional[str] = None,
                console_level: int = logging.INFO,
                file_level: int = logging.DEBUG,
                report_errors: bool = True,
                max_error_history: int = 100,
                configure_logging: bool = True):
        """
        Initialize the error handler.

        Args:
            log_file: Path to log file (None for no file logging)
            console_level: Logging level for console output
            file_level: Logging level for file output
            report_errors: Whether to collect error reports
            max_error_history: Maximum number of errors to keep in history
            configure_logging: Whether to install console/file handlers
        """
        self.log_file = log_file
        self.console_level = console_level
        self.file_level = file_level
        self.report_errors = report_errors
        self.max_error_history = max_error_history

        # Error history
        self.error_history = []
        self.error_history_lock = threading.Lock()

        # Error handlers by category
        self.error_handlers = {}

        if configure_logging:
            self._configure_logging()

        logger.debug("Error handler initialized")

    def _configure_logging(self) -> None:
        """Configure logging system."""
        # Reset handlers
        logger.handlers = []

        # Set global log level
        logger.setLevel(logging.DEBUG)

        # Create console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.console_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)

        # Create file handler if specified
        if self.log_file:
            self._add_file_handler(self.log_file)

    def _add_file_handler(self, log_file: str) -> None:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(self.file_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    def handle_error(self,
                  exception: Optional[Exception] = None,
                  message: Optional[str] = None,
                  level: ErrorLevel = ErrorLevel.ERROR,
                  category: Optional[ErrorCategory] = None,
                  context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Handle an error.

        Args:
            exception: Exception object
            message: Error message
            level: Error severity level
            category: Error category (derived from the exception if None)
            context: Additional context

        Returns:
            Error information dictionary
        """
        if category is None:
            category = category_for_exception(exception) if exception else ErrorCategory.UNKNOWN

        if message is None:
            message = str(exception) if exception else "Unknown error"

        error_info = {
            "timestamp": datetime.datetime.now().isoformat(),
            "level": level.name,
            "category": category.name,
            "message": message,
            "exception_type": exception.__class__.__name__ if exception else None,
            "exception_args": list(exception.args) if exception else None,
            "traceback": (
                "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))
                if exception and exception.__traceback__ else None
            ),
            "context": context or {},
            "caller": self._get_caller_info()
        }

        # Log error
        log_level = getattr(logging, level.name)
        logger.log(log_level, f"{message} ({category.name})")

        if error_info["traceback"]:
            logger.debug(f"Traceback: {error_info['traceback']}")

        # Add to history
        if self.report_errors:
            with self.error_history_lock:
                self.error_history.append(error_info)

                # Trim history if needed
                if len(self.error_history) > self.max_error_history:
                    self.error_history = self.error_history[-self.max_error_history:]

        # Call category handler if available
        handler = self.error_handlers.get(category)
        if handler:
            try:
                handler(error_info)
            except Exception as e:
                logger.error(f"Error in error handler: {e}")

        return error_info

    def report(self, exception: Chip8Error, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Report a virtual machine exception at the level its fatality implies.

        Args:
            exception: Emulator exception
            context: Additional context

        Returns:
            Error information dictionary
        """
        level = ErrorLevel.ERROR if getattr(exception, "fatal", True) else ErrorLevel.WARNING
        return self.handle_error(exception=exception, level=level, context=context)

    def _get_caller_info(self) -> Dict[str, Any]:
        """
        Get information about the caller.

        Returns:
            Dictionary with caller information
        """
        caller_info = {
            "file": None,
            "function": None,
            "line": None,
            "module": None
        }

        frame = inspect.currentframe()
        try:
            # Look for caller outside of error_handler.py
            while frame:
                code = frame.f_code
                if os.path.basename(code.co_filename) != 'error_handler.py':
                    caller_info["file"] = code.co_filename
                    caller_info["function"] = code.co_name
                    caller_info["line"] = frame.f_lineno
                    caller_info["module"] = frame.f_globals.get("__name__")
                    break
                frame = frame.f_back
        finally:
            del frame

        return caller_info

    def register_handler(self, category: ErrorCategory, handler: Callable[[Dict[str, Any]], None]) -> None:
        """
        Register a handler for a specific error category.

        Args:
            category: Error category
            handler: Handler function
        """
        self.error_handlers[category] = handler
        logger.debug(f"Registered handler for {category.name} errors")

    def unregister_handler(self, category: ErrorCategory) -> bool:
        """
        Unregister a handler for a specific error category.

        Args:
            category: Error category

        Returns:
            True if handler was removed, False if not found
        """
        if category in self.error_handlers:
            del self.error_handlers[category]
            logger.debug(f"Unregistered handler for {category.name} errors")
            return True
        return False

    def clear_error_history(self) -> None:
        """Clear the error history."""
        with self.error_history_lock:
            self.error_history = []
        logger.debug("Cleared error history")

    def get_error_history(self,
                         level: Optional[ErrorLevel] = None,
                         category: Optional[ErrorCategory] = None,
                         max_errors: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Get error history, optionally filtered.

        Args:
            level: Filter by error level
            category: Filter by error category
            max_errors: Maximum number of errors to return

        Returns:
            List of error dictionaries
        """
        with self.error_history_lock:
            errors = self.error_history.copy()

        if level:
            errors = [e for e in errors if e["level"] == level.name]

        if category:
            errors = [e for e in errors if e["category"] == category.name]

        if max_errors and max_errors < len(errors):
            errors = errors[-max_errors:]

        return errors

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Get a summary of errors by category and level.

        Returns:
            Dictionary with error summary
        """
        with self.error_history_lock:
            errors = self.error_history.copy()

        categories = {}
        levels = {}
        exceptions = {}
        for e in errors:
            categories[e["category"]] = categories.get(e["category"], 0) + 1
            levels[e["level"]] = levels.get(e["level"], 0) + 1
            exception_type = e.get("exception_type")
            if exception_type:
                exceptions[exception_type] = exceptions.get(exception_type, 0) + 1

        return {
            "total": len(errors),
            "by_category": categories,
            "by_level": levels,
            "by_exception": exceptions,
            "latest": errors[-1] if errors else None
        }

    def export_error_report(self, filename: str) -> bool:
        """
        Export error history to a JSON file.

        Args:
            filename: Output filename

        Returns:
            True if successful, False otherwise
        """
        try:
            directory = os.path.dirname(filename)
            if directory:
                os.makedirs(directory, exist_ok=True)

            with self.error_history_lock:
                errors = self.error_history.copy()

            report = {
                "timestamp": datetime.datetime.now().isoformat(),
                "summary": self.get_error_summary(),
                "errors": errors
            }

            with open(filename, 'w') as f:
                json.dump(report, f, indent=2, default=str)

            logger.info(f"Exported error report to {filename}")
            return True

        except OSError as e:
            logger.error(f"Error exporting error report: {e}")
            return False

    def log_exception(self, exception: Exception,
                    message: Optional[str] = None,
                    category: Optional[ErrorCategory] = None,
                    context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.handle_error(
            exception=exception,
            message=message,
            level=ErrorLevel.ERROR,
            category=category,
            context=context
        )

    def log_warning(self, message: str,
                  category: ErrorCategory = ErrorCategory.UNKNOWN,
                  context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.handle_error(
            message=message,
            level=ErrorLevel.WARNING,
            category=category,
            context=context
        )

# Decorators

def error_boundary(handler: ErrorHandler, category: Optional[ErrorCategory] = None):
    """
    Decorator that reports exceptions raised by the wrapped function and
    re-raises them.

    Args:
        handler: Error handler to report to
        category: Error category (derived from the exception if None)

    Returns:
        Decorator function
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                context = {
                    "function": func.__name__,
                    "module": func.__module__,
                }
                handler.log_exception(
                    exception=e,
                    message=f"Error in {func.__name__}: {e}",
                    category=category,
                    context=context
                )
                raise

        return wrapper
    return decorator
