from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List

from sanic.log import logger

from hydra_shields.evaluation.types import EvaluationStatus, Verdict
from hydra_shields.hydra.model import Build, JobsetEvalList, JobsetEvaluation
from hydra_shields.matcher import Matcher

BuildFetcher = Callable[[int], Awaitable[Build]]


async def check_evaluation(
    evaluation: JobsetEvaluation,
    job_matcher: Matcher,
    fetch_build: BuildFetcher,
) -> EvaluationStatus:
    builds: List[Build] = await asyncio.gather(
        *(fetch_build(build_id) for build_id in evaluation.builds)
    )
    matched = [build for build in builds if job_matcher.is_match(build.job)]

    if not matched:
        # an evaluation without the job counts as failed, it is not skipped
        logger.info(
            "Evaluation %s has no build matching %s (%d builds)",
            evaluation.id,
            job_matcher,
            len(builds),
        )
        return EvaluationStatus(queued=False, failed=True, matched=0)

    return EvaluationStatus(
        queued=any(not build.is_finished for build in matched),
        failed=any(not build.is_success for build in matched),
        matched=len(matched),
    )


async def resolve_jobset(
    eval_list: JobsetEvalList,
    job_matcher: Matcher,
    fetch_build: BuildFetcher,
) -> Verdict:
    """
    Walk the evaluations most recent first and return the verdict of the first
    settled one. Evaluations with unfinished matching builds are skipped.
    """
    for evaluation in eval_list.evals:
        status = await check_evaluation(evaluation, job_matcher, fetch_build)

        if status.queued:
            logger.debug("Evaluation %s is still queued, trying older", evaluation.id)
            continue

        return Verdict.failing if status.failed else Verdict.passing

    return Verdict.undetermined
