from hydra_shields.evaluation.resolver import check_evaluation, resolve_jobset
from hydra_shields.evaluation.types import EvaluationStatus, Verdict

__all__ = [
    "check_evaluation",
    "resolve_jobset",
    "EvaluationStatus",
    "Verdict",
]
