"""Decorators for pipeline steps with automatic validation."""
import functools
import inspect
import logging
from collections.abc import Callable
from typing import Any

from journey_canon import AnalyticsData, validate_journey_frame

logger = logging.getLogger(__name__)

# Parameter name of the canonical journey frame
JOURNEYS = "journeys"


def step(
    *,
    validate_input: bool = True,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator for pipeline steps with automatic validation.

    This decorator validates the ``journeys`` input frame against the
    canonical journey schema before the step runs. Other parameters are
    passed through untouched.

    When the pipeline passes its AnalyticsData instance as the
    ``analytics_data`` keyword, validation is skipped for a frame that was
    already validated, and the step's returned dict is stored on the
    instance (frames as tables, dicts as summaries). Called directly, a
    step simply returns its result.

    Args:
        validate_input: If True, validate the journeys input frame. Can be
            overridden per call with a ``validate_input`` keyword.

    Example:
        >>> @step()
        ... def summarize_mode_purpose(
        ...     journeys: pl.DataFrame,
        ...     config: AnalyticsConfig | None = None,
        ... ) -> dict[str, pl.DataFrame]:
        ...     return {"mode_share": mode_share(journeys, config)}

    Returns:
        Decorated function with validation
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:  # noqa: ANN401
            analytics_data = kwargs.pop("analytics_data", None)
            should_validate = kwargs.pop("validate_input", validate_input)

            if should_validate:
                _validate_inputs(func, args, kwargs, analytics_data)

            result = func(*args, **kwargs)

            if analytics_data is not None and isinstance(result, dict):
                analytics_data.store(func.__name__, result)

            return result

        return wrapper  # type: ignore[return-value]

    return decorator


def _validate_inputs(
    func: Callable,
    args: tuple,
    kwargs: dict,
    analytics_data: AnalyticsData | None = None,
) -> None:
    """Validate the journeys parameter if the step takes one."""
    sig = inspect.signature(func)
    bound = sig.bind(*args, **kwargs)
    bound.apply_defaults()

    if JOURNEYS not in bound.arguments:
        return

    journeys = bound.arguments[JOURNEYS]

    logger.info(
        "Validating input '%s' for step '%s'", JOURNEYS, func.__name__
    )
    if analytics_data is not None and analytics_data.journeys is journeys:
        analytics_data.validate(step=func.__name__)
    else:
        validate_journey_frame(journeys)
