"""Application state and configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mergejudge.core.base import BaseConfig, BaseState
from mergejudge.core.log import Logger
from mergejudge.core.yaml_settings import (
    APP_NAME,
    CONFIG_FILENAME,
    YamlWithIncludesSettingsSource,
)
from mergejudge.scoring.aggregate import TIER_WEIGHTS, Tier, validate_weights
from mergejudge.scoring.rules import DEFAULT_RULES, Dimension, PatternRule, with_extra_rules
from mergejudge.scoring.scorer import DEFAULT_BASELINE, PatternScorer

# Modules reachable from templates: {platformdirs.user_state_dir}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}


# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class GitConfig(BaseConfig):
    """Repository in which conflicts are resolved."""

    workdir: Path = Field(
        default_factory=Path.cwd,
        description="Git working tree with an in-progress merge",
    )

    @field_validator("workdir")
    @classmethod
    def _absolute(cls, value: Path) -> Path:
        # Templates are substituted later; leave them alone
        if "{" in str(value):
            return value
        return value.expanduser().resolve()


class ResolverConfig(BaseConfig):
    """Resolution run settings."""

    threshold: float = Field(
        default=7.0,
        ge=0.0,
        le=10.0,
        description=(
            "Minimum confidence for applying a strategy; "
            "anything lower is deferred to a person"
        ),
    )
    dry_run: bool = Field(
        default=False,
        description="Decide and report only; write nothing",
    )
    tier: Tier = Field(
        default=Tier.BASIC,
        description="Analysis tier used for scoring: basic or advanced",
    )
    backup_dir: Path | None = Field(
        default=None,
        description=(
            "Where originals are saved for rollback "
            "(default: <git dir>/mergejudge/backup)"
        ),
    )
    report_file: Path | None = Field(
        default=None,
        description="Write the run report here (.json for JSON)",
    )


class RuleConfig(BaseConfig):
    """A scoring rule added from configuration."""

    dimension: Dimension
    name: str
    pattern: str = Field(description="Regular expression, multiline")
    delta: float = Field(description="Added to the score on a match")

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"Invalid pattern {value!r}: {e}") from e
        return value

    def to_rule(self) -> PatternRule:
        return PatternRule(self.name, self.pattern, self.delta)


class ScoringConfig(BaseConfig):
    """Pattern scoring and aggregation settings."""

    baseline: float = Field(
        default=DEFAULT_BASELINE,
        ge=0.0,
        le=10.0,
        description="Score every dimension starts from",
    )
    weights: dict[Tier, dict[Dimension, float]] = Field(
        default_factory=dict,
        description="Per-tier weight tables replacing the built-in ones",
    )
    extra_rules: list[RuleConfig] = Field(
        default_factory=list,
        description="Rules appended to the built-in rule table",
    )

    @field_validator("weights")
    @classmethod
    def _positive_weights(
        cls, value: dict[Tier, dict[Dimension, float]]
    ) -> dict[Tier, dict[Dimension, float]]:
        return {tier: validate_weights(table) for tier, table in value.items()}

    def weights_for(self, tier: Tier) -> dict[Dimension, float]:
        return dict(self.weights.get(tier) or TIER_WEIGHTS[tier])

    def build_scorer(self) -> PatternScorer:
        rules = with_extra_rules(
            DEFAULT_RULES,
            [(extra.dimension, extra.to_rule()) for extra in self.extra_rules],
        )
        return PatternScorer(rules=rules, baseline=self.baseline)


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance"
    )
    git: GitConfig = Field(
        default_factory=GitConfig,
        description="Repository settings"
    )
    resolver: ResolverConfig = Field(
        default_factory=ResolverConfig,
        description="Resolution run settings"
    )
    scoring: ScoringConfig = Field(
        default_factory=ScoringConfig,
        description="Scoring rules and weights"
    )
    log_level: str | None = Field(
        default=None,
        description=(
            "Console log level override: 'spew', 'trace', 'debug', "
            "'info', 'warn', 'error', 'fatal'"
        ),
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir(APP_NAME)) / "logs"
        ),
        description="Root directory for log files",
    )
    commands: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        description="Command templates by category (git, ...)",
    )

    @model_validator(mode='after')
    def _setup_logger(self) -> 'Config':
        """Start the global logger from the loaded logger section."""
        from mergejudge.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger()
        if self.log_level:
            self.logger.console.level = self.log_level

        setup_logger(
            log_root=self.log_root,
            run_name=self.git.workdir.name or "root",
            level=self.logger.level,
            console=self.logger.console,
            file=self.logger.file,
            logfire=self.logger.logfire,
        )
        return self


# ============================================================
# RUNTIME STATE MODELS (mutable during workflow execution)
# ============================================================

class ResolveState(BaseState):
    """Resolve workflow runtime state."""

    resolver: Any = Field(
        default=None,
        description="ConflictResolver for this run",
    )
    decisions: list = Field(
        default_factory=list,
        description="ResolutionDecisions of this run",
    )
    backup_dir: Path | None = Field(
        default=None,
        description="Where the run's backup was saved",
    )
    status: str = Field(
        default="pending",
        description="pending, running, nothing-to-do, complete",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class RollbackState(BaseState):
    """Rollback workflow runtime state."""

    backup_dir: Path | None = Field(
        default=None,
        description="Backup directory to restore from",
    )
    restored: list[str] = Field(
        default_factory=list,
        description="Files restored from the backup",
    )
    status: str = Field(default="pending", description="pending, complete")


class Runtime(BaseModel):
    """All runtime state, one section per workflow."""

    resolve: ResolveState = Field(default_factory=ResolveState)
    rollback: RollbackState = Field(default_factory=RollbackState)


# ============================================================
# STATE (config + runtime combined)
# ============================================================

class State(BaseSettings):
    """Configuration plus runtime state; flows through every workflow.

    Loads from YAML files, .env, MERGEJUDGE_* environment variables
    and the command line, then substitutes {config.*} templates.
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state (mutates during workflow execution)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file=CONFIG_FILENAME,
        env_file=".env",
        env_prefix="MERGEJUDGE_",
        env_nested_delimiter="__",
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Highest priority first: init/CLI, env, .env, YAML, secrets."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> State:
        """Replace {config.x.y} style templates in strings and paths."""
        self._substitute_recursive(self)
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i in range(len(obj)):
                obj[i] = self._substitute_value(obj[i])

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            new = self._substitute_string(value)
            return value if new == value else new
        if isinstance(value, Path):
            new = self._substitute_string(str(value))
            return value if new == str(value) else Path(new)
        if isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
        return value

    def _substitute_string(self, value: str) -> str:
        """Replace {dotted.path} templates with the values they name.

        Examples:
            "{config.git.workdir}/.backup" -> "/home/me/repo/.backup"
            "{platformdirs.user_state_dir}" -> "~/.local/state/mergejudge"

        Unknown references are left as they are.
        """
        def replace_template(match):
            parts = match.group(1).split(".")
            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)
                if callable(obj):
                    try:
                        obj = obj(APP_NAME, appauthor=False)
                    except TypeError:
                        obj = obj()
                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return re.sub(r'\{([a-z_][a-z0-9._]*)\}', replace_template, value)


__all__ = [
    "Config",
    "GitConfig",
    "ResolverConfig",
    "RuleConfig",
    "ScoringConfig",
    "State",
]
