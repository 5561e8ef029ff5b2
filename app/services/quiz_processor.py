# services/quiz_processor.py
import importlib
import inspect
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class QuizProcessor(Protocol):
    """
    Work the queue listeners hand off to the quiz domain.
    Raising from either method leaves the message in the queue for redelivery.
    """

    async def mark_item_ready(self, key: str) -> None:
        """Mark the quiz image stored at `key` as uploaded."""
        ...

    async def run_deferred_processing(self, quiz_id: str) -> None:
        """Run AI extraction for the quiz."""
        ...


class QuizProcessorLoadError(Exception):
    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


def load_quiz_processor(path: str) -> QuizProcessor:
    """
    Resolve "package.module:attribute" to a QuizProcessor.
    A class or factory attribute is called with no arguments.
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise QuizProcessorLoadError(f"Invalid processor path {path!r}, expected 'module:attribute'")

    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise QuizProcessorLoadError(f"Cannot load quiz processor {path!r}: {e}", cause=e) from e

    # a class passes the protocol check on its own, so test for it first
    if inspect.isclass(target) or (callable(target) and not isinstance(target, QuizProcessor)):
        try:
            processor = target()
        except Exception as e:
            raise QuizProcessorLoadError(f"Quiz processor factory {path!r} failed: {e}", cause=e) from e
    else:
        processor = target
    if not isinstance(processor, QuizProcessor):
        raise QuizProcessorLoadError(
            f"{path!r} does not provide mark_item_ready and run_deferred_processing"
        )
    return processor
