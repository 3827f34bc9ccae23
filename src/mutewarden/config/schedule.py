"""Loading the TOML configuration file into runtime configuration."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveFloat,
    PositiveInt,
    ValidationError,
    field_validator,
)

from mutewarden.domain.errors import ConfigError
from mutewarden.domain.model import (
    DEFAULT_NOTIFY_MESSAGE,
    EntityPolicy,
    HolidayMethod,
    Rule,
    RuleGroup,
    Weekday,
    WeekdaySchedule,
    parse_time_of_day,
)
from mutewarden.domain.schedule_index import ScheduleIndex

from .calendar import (
    HOLIDAY_TABLE_URL,
    HOLIDAY_TIMEOUT_SECONDS,
    CalendarConfig,
    calendar_resilience,
)
from .env import CONFIG_PATH_ENV, get_env, require_env_var
from .errors import ConfigurationError, MissingConfigurationError
from .onebot import ONEBOT_TIMEOUT_SECONDS, OneBotBackendConfig, OneBotConfig
from .storage import StorageConfig, get_storage_config

DEFAULT_TIMEZONE = "Asia/Shanghai"
DEFAULT_CONFIG_FILENAME = "mutewarden.toml"


class ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class RuleModel(ConfigFileModel):
    time: str
    muted: bool

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        parse_time_of_day(value)
        return value

    def to_domain(self) -> Rule:
        return Rule.at(self.time, muted=self.muted)


class RuleGroupModel(ConfigFileModel):
    id: str = Field(min_length=1)
    rules: list[RuleModel] = Field(min_length=1)
    notify: bool = False
    notify_message: str = DEFAULT_NOTIFY_MESSAGE

    def to_domain(self) -> RuleGroup:
        return RuleGroup(
            id=self.id,
            rules=tuple(rule.to_domain() for rule in self.rules),
            notify=self.notify,
            notify_message=self.notify_message,
        )


class WeekdayDaysModel(ConfigFileModel):
    monday: str
    tuesday: str
    wednesday: str
    thursday: str
    friday: str
    saturday: str
    sunday: str


class WeekdayScheduleModel(ConfigFileModel):
    id: str = Field(min_length=1)
    days: WeekdayDaysModel

    def to_domain(self) -> WeekdaySchedule:
        return WeekdaySchedule(
            id=self.id,
            day_to_rule_group={day: getattr(self.days, day.value) for day in Weekday},
        )


class EntityModel(ConfigFileModel):
    id: str = Field(min_length=1)
    weekday_schedule: str
    holiday_override: bool = True
    holiday_rule_group: str = "default"
    compensation_rule_group: str = "compensation"

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        # Group numbers are usually written bare in TOML.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def to_domain(self) -> EntityPolicy:
        return EntityPolicy(
            entity_id=self.id,
            weekday_schedule_id=self.weekday_schedule,
            holiday_override_enabled=self.holiday_override,
            holiday_rule_group=self.holiday_rule_group,
            compensation_rule_group=self.compensation_rule_group,
        )


class CalendarSection(ConfigFileModel):
    endpoint: Literal["table", "day"] = "table"
    table_url: str = HOLIDAY_TABLE_URL
    day_url: str | None = None
    timeout_seconds: PositiveFloat = HOLIDAY_TIMEOUT_SECONDS
    http_cache: bool = True


class OneBotBackendModel(ConfigFileModel):
    name: str = Field(min_length=1)
    base_url: str = Field(min_length=1)
    access_token: str | None = None
    access_token_env: str | None = None

    def to_config(self) -> OneBotBackendConfig:
        token = self.access_token
        if token is None and self.access_token_env:
            token = require_env_var(
                self.access_token_env, purpose=f"access token of OneBot backend {self.name!r}"
            )
        return OneBotBackendConfig(name=self.name, base_url=self.base_url, access_token=token)


class OneBotSection(ConfigFileModel):
    backends: list[OneBotBackendModel] = Field(default_factory=list)
    timeout_seconds: PositiveFloat = ONEBOT_TIMEOUT_SECONDS


class StorageSection(ConfigFileModel):
    data_dir: str | None = None
    database_uri: str | None = None


class ConfigDocument(ConfigFileModel):
    holiday_method: HolidayMethod = HolidayMethod.HYBRID
    timezone: str = DEFAULT_TIMEZONE
    heartbeat_seconds: PositiveInt = 60
    calendar: CalendarSection = Field(default_factory=CalendarSection)
    onebot: OneBotSection = Field(default_factory=OneBotSection)
    storage: StorageSection = Field(default_factory=StorageSection)
    rule_groups: list[RuleGroupModel] = Field(default_factory=list)
    weekday_schedules: list[WeekdayScheduleModel] = Field(default_factory=list)
    entities: list[EntityModel] = Field(default_factory=list)


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Everything the runtime needs, derived from one configuration file."""

    timezone: ZoneInfo
    heartbeat_seconds: int
    calendar: CalendarConfig
    onebot: OneBotConfig
    schedule: ScheduleIndex
    storage: StorageConfig
    database_uri: str | None = None
    source: Path | None = None

    @property
    def holiday_method(self) -> HolidayMethod:
        return self.calendar.method


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Return the configuration path from the argument, the environment or the CWD."""

    if path is not None:
        return Path(path).expanduser()
    env_path = get_env(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return Path.cwd() / DEFAULT_CONFIG_FILENAME


def read_config_document(path: Path) -> dict[str, object]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise MissingConfigurationError(f"Configuration file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"{path}: invalid TOML: {exc}") from exc


def parse_app_config(document: Mapping[str, object], *, source: Path | None = None) -> AppConfig:
    """Validate a decoded configuration document and build the runtime config."""

    where = str(source) if source is not None else "configuration"
    try:
        parsed = ConfigDocument.model_validate(document)
    except ValidationError as exc:
        raise ConfigurationError(f"{where}: {exc}") from exc

    try:
        timezone = ZoneInfo(parsed.timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"{where}: unknown timezone {parsed.timezone!r}") from exc

    schedule = _build_schedule(parsed, where)

    section = parsed.calendar
    if section.endpoint == "day" and not section.day_url:
        raise ConfigurationError(f"{where}: calendar.day_url is required for endpoint 'day'")
    calendar = CalendarConfig(
        method=parsed.holiday_method,
        endpoint=section.endpoint,
        table_url=section.table_url,
        day_url=section.day_url,
        timeout_seconds=section.timeout_seconds,
        resilience=calendar_resilience(
            http_cache=section.http_cache, timeout_seconds=section.timeout_seconds
        ),
    )

    onebot = OneBotConfig(
        backends=tuple(backend.to_config() for backend in parsed.onebot.backends),
        timeout_seconds=parsed.onebot.timeout_seconds,
    )

    return AppConfig(
        timezone=timezone,
        heartbeat_seconds=parsed.heartbeat_seconds,
        calendar=calendar,
        onebot=onebot,
        schedule=schedule,
        storage=get_storage_config(parsed.storage.data_dir),
        database_uri=parsed.storage.database_uri,
        source=source,
    )


def load_app_config(path: str | Path | None = None) -> AppConfig:
    config_path = resolve_config_path(path)
    document = read_config_document(config_path)
    return parse_app_config(document, source=config_path)


def _build_schedule(parsed: ConfigDocument, where: str) -> ScheduleIndex:
    try:
        return ScheduleIndex.build(
            rule_groups=(group.to_domain() for group in parsed.rule_groups),
            weekday_schedules=(schedule.to_domain() for schedule in parsed.weekday_schedules),
            policies=(entity.to_domain() for entity in parsed.entities),
        )
    except ConfigError as exc:
        raise ConfigurationError(f"{where}: {exc}") from exc

