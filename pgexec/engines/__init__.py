"""
Engines: request protocol, named-parameter SQL, executors, dispatcher.
"""

from pgexec.engines.batch import BatchExecutor
from pgexec.engines.dispatcher import (
    EXIT_EMPTY_INPUT,
    EXIT_FAILURE,
    EXIT_OK,
    RequestDispatcher,
)
from pgexec.engines.protocol import (
    ActionEnum,
    ParsedInput,
    Request,
    RequestParseError,
    parse_input,
)
from pgexec.engines.reporter import ErrorRecord, Outcome, Reporter
from pgexec.engines.single import SingleExecutor
from pgexec.engines.sql import translate

__all__ = [
    "ActionEnum",
    "BatchExecutor",
    "ErrorRecord",
    "EXIT_EMPTY_INPUT",
    "EXIT_FAILURE",
    "EXIT_OK",
    "Outcome",
    "ParsedInput",
    "Reporter",
    "Request",
    "RequestDispatcher",
    "RequestParseError",
    "SingleExecutor",
    "parse_input",
    "translate",
]
