from hydra_shields.hydra.api import API, create_limiter, create_session, parse_base_url
from hydra_shields.hydra.model import (
    Build,
    Jobset,
    JobsetEvalList,
    JobsetEvaluation,
    Project,
)

__all__ = [
    "API",
    "Build",
    "Jobset",
    "JobsetEvalList",
    "JobsetEvaluation",
    "Project",
    "create_limiter",
    "create_session",
    "parse_base_url",
]
