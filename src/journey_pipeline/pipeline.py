"""YAML-configured runner for the analytics report steps."""

import inspect
import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from journey_analytics.configs import AnalyticsConfig
from journey_analytics.zones import ZoneGazetteer
from journey_canon import AnalyticsData

logger = logging.getLogger(__name__)

# {{ name }} placeholders, whitespace inside the braces optional
TEMPLATE_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")

# Keywords handled by the @step wrapper, never resolved from the config
STEP_KEYWORDS = frozenset({"analytics_data", "validate_input", "kwargs"})


def substitute_variables(
    obj: Any,  # noqa: ANN401
    variables: dict[str, str],
) -> Any:  # noqa: ANN401
    """Replace ``{{ name }}`` placeholders in every string of a config tree.

    Raises:
        ValueError: If a placeholder names an undefined variable
    """
    if isinstance(obj, str):

        def lookup(match: re.Match) -> str:
            name = match.group(1)
            if name not in variables:
                msg = f"Undefined template variable '{name}' in '{obj}'"
                raise ValueError(msg)
            return variables[name]

        return TEMPLATE_PATTERN.sub(lookup, obj)
    if isinstance(obj, dict):
        return {
            k: substitute_variables(v, variables) for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [substitute_variables(item, variables) for item in obj]
    return obj


class Pipeline:
    """Runs the report steps listed in a YAML configuration.

    Example configuration::

        output_dir: "output/report"

        analytics:
          timezone: "Asia/Kolkata"

        steps:
          - name: load_journeys
            params:
              input_path: "data/journeys.json"
          - name: summarize_dashboard
          - name: write_tables
            params:
              output_dir: "{{ output_dir }}"

    Top-level string values are template variables. The ``analytics``
    section builds the AnalyticsConfig handed to every step that takes a
    ``config`` argument.
    """

    data: AnalyticsData
    steps: dict[str, Callable]
    analytics_config: AnalyticsConfig
    gazetteer: ZoneGazetteer

    def __init__(
        self,
        config_path: str | Path,
        steps: list[Callable] | None = None,
    ) -> None:
        """Load the configuration and register the available steps.

        Args:
            config_path: Path to the YAML configuration.
            steps: Step functions the configuration may refer to by name.
        """
        self.config_path = Path(config_path)
        self.config = self._load_config()
        self.steps = {func.__name__: func for func in steps or []}
        self.data = AnalyticsData()
        self.analytics_config = AnalyticsConfig.model_validate(
            self.config.get("analytics") or {}
        )
        self.gazetteer = ZoneGazetteer.from_config(self.analytics_config)

    def _load_config(self) -> dict[str, Any]:
        """Read the YAML file and fill in its template variables."""
        with self.config_path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        variables = {
            name: value
            for name, value in raw.items()
            if isinstance(value, str)
        }
        config = substitute_variables(raw, variables)
        config.setdefault("steps", [])
        return config

    def step_params(self, step_name: str) -> dict[str, Any]:
        """The ``params`` of the first configured step with this name."""
        for step_cfg in self.config["steps"]:
            if step_cfg["name"] == step_name:
                return step_cfg.get("params") or {}
        return {}

    def parse_step_args(
        self, step_name: str, step_obj: Callable
    ) -> dict[str, Any]:
        """Resolve the keyword arguments of a step by parameter name.

        Lookup order for each parameter: the step's configured params, the
        pipeline's ``config`` and ``gazetteer``, then the AnalyticsData
        attributes (``journeys``, ``tables``, ``summaries``). Parameters
        found nowhere keep their default.

        Raises:
            ValueError: If a parameter without default cannot be resolved.
        """
        params = self.step_params(step_name)
        injected = {
            "config": self.analytics_config,
            "gazetteer": self.gazetteer,
        }
        signature = inspect.signature(step_obj).parameters

        resolved: dict[str, Any] = {}
        for name, parameter in signature.items():
            if name in STEP_KEYWORDS:
                continue
            if name in params:
                resolved[name] = params[name]
            elif name in injected:
                resolved[name] = injected[name]
            elif hasattr(self.data, name):
                resolved[name] = getattr(self.data, name)
            elif parameter.default is inspect.Parameter.empty:
                accepted = ", ".join(
                    n for n in signature if n not in STEP_KEYWORDS
                )
                msg = (
                    f"Missing required parameter '{name}' for step "
                    f"'{step_name}' (accepts: {accepted})"
                )
                raise ValueError(msg)
        return resolved

    def run(self) -> AnalyticsData:
        """Run every configured step in order and return the results."""
        configured = self.config["steps"]
        unknown = [
            s["name"] for s in configured if s["name"] not in self.steps
        ]
        if unknown:
            msg = (
                f"Step '{unknown[0]}' not found in pipeline steps "
                f"(registered: {', '.join(self.steps) or 'none'})"
            )
            raise ValueError(msg)

        for position, step_cfg in enumerate(configured, start=1):
            name = step_cfg["name"]
            logger.info("")
            logger.info("=" * 70)
            logger.info("Step %d/%d: %s", position, len(configured), name)
            logger.info("=" * 70)

            step_obj = self.steps[name]
            kwargs = self.parse_step_args(name, step_obj)
            if "validate_input" in step_cfg:
                kwargs["validate_input"] = step_cfg["validate_input"]
            step_obj(analytics_data=self.data, **kwargs)

        logger.info(
            "Pipeline completed: %d tables, %d summaries.",
            len(self.data.tables),
            len(self.data.summaries),
        )
        return self.data
