from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class RbacRules(BaseModel):
    roles: dict[str, list[str]]
    public_permissions: list[str]


class AbacRule(BaseModel):
    if_condition: dict[str, Any] = Field(alias="if")
    allow: list[str]

    model_config = ConfigDict(populate_by_name=True)


class AbacRules(BaseModel):
    article_rules: list[AbacRule]
    comment_rules: list[AbacRule]


class RangeRule(BaseModel):
    min: int
    max: int


class RegexRule(RangeRule):
    pattern: str


class ArticleRules(BaseModel):
    title: RangeRule
    slug: RegexRule
    summary_max: int = 500


class SchedulingRules(BaseModel):
    sweep_interval_seconds: float = Field(default=60, gt=0)
    batch_limit: int = Field(default=100, gt=0)
    # 0 disables the periodic counter reconciliation
    reconcile_every_sweeps: int = Field(default=0, ge=0)
    max_scheduled_days_ahead: int = Field(default=365, gt=0)


class CommentRules(BaseModel):
    max_levels: int = Field(default=3, ge=1)
    edit_window_minutes: int = Field(default=15, ge=0)
    max_length: int = Field(default=5000, gt=0)
    default_status: Literal["published", "pending"] = "published"
    page_size_default: int = Field(default=50, gt=0)
    page_size_max: int = Field(default=100, gt=0)


class EngagementRules(BaseModel):
    folder_name_max: int = Field(default=100, gt=0)
    bookmark_page_size_default: int = Field(default=20, gt=0)
    bookmark_page_size_max: int = Field(default=100, gt=0)


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)
    db_busy_timeout_seconds: float = Field(default=5.0, gt=0)


class Rules(BaseModel):
    project: ProjectRules
    rbac: RbacRules
    abac: AbacRules
    articles: ArticleRules
    scheduling: SchedulingRules
    comments: CommentRules
    engagement: EngagementRules
    ops: OpsRules
