import asyncio
import functools
from typing import Dict, List, Tuple

from sanic.log import logger
from yarl import URL

from hydra_shields.cache import Caches
from hydra_shields.errors import EndpointError
from hydra_shields.evaluation import Verdict, resolve_jobset
from hydra_shields.hydra.api import API, parse_base_url
from hydra_shields.hydra.model import Build, Jobset, JobsetEvalList, Project
from hydra_shields.matcher import Matcher, compile_glob
from hydra_shields.metric import error_counter, verdict_counter
from hydra_shields.model import EndpointResponse

PASSING_MESSAGE = "passing"
FAILING_MESSAGE = "one or more jobs failing"


class Aggregator:
    api: API
    caches: Caches

    def __init__(self, api: API, caches: Caches):
        self.api = api
        self.caches = caches

    async def projects(self, base_url: URL) -> List[Project]:
        return await self.caches.projects.get_or_fetch(
            str(base_url), lambda: self.api.fetch_projects(base_url)
        )

    async def evaluations(self, base_url: URL, jobset: Jobset) -> JobsetEvalList:
        return await self.caches.evaluations.get_or_fetch(
            (str(base_url), jobset.project, jobset.name),
            lambda: self.api.fetch_evaluations(base_url, jobset),
        )

    async def build(self, base_url: URL, build_id: int) -> Build:
        return await self.caches.builds.get_or_fetch(
            (str(base_url), build_id),
            lambda: self.api.fetch_build(base_url, build_id),
        )

    async def jobsets(self, base_url: URL, jobset_matcher: Matcher) -> List[Jobset]:
        projects = await self.projects(base_url)
        return [
            jobset
            for project in projects
            for jobset in project.jobset_identities()
            if jobset_matcher.is_match(str(jobset))
        ]

    async def verdicts(
        self, base_url: URL, jobset_matcher: Matcher, job_matcher: Matcher
    ) -> Dict[Jobset, Verdict]:
        jobsets = await self.jobsets(base_url, jobset_matcher)
        logger.debug("Jobsets matching %s: %s", jobset_matcher, jobsets)
        if not jobsets:
            logger.warning("No jobset on %s matches %s", base_url, jobset_matcher)

        eval_lists = await asyncio.gather(
            *(self.evaluations(base_url, jobset) for jobset in jobsets)
        )

        fetch_build = functools.partial(self.build, base_url)
        verdicts = await asyncio.gather(
            *(
                resolve_jobset(eval_list, job_matcher, fetch_build)
                for eval_list in eval_lists
            )
        )

        for jobset, verdict in zip(jobsets, verdicts):
            logger.info("Jobset %s is %s for %s", jobset, verdict.name, job_matcher)
            verdict_counter.labels(verdict=verdict.name).inc()

        return dict(zip(jobsets, verdicts))

    async def check(self, base_url: str, jobsets: str, jobs: str) -> EndpointResponse:
        url = parse_base_url(base_url)
        jobset_matcher = compile_glob(jobsets)
        job_matcher = compile_glob(jobs)

        verdicts = await self.verdicts(url, jobset_matcher, job_matcher)

        # undetermined jobsets count as not passing
        passing = all(verdict is Verdict.passing for verdict in verdicts.values())

        return EndpointResponse(
            label=f"{jobsets}:{jobs}",
            message=PASSING_MESSAGE if passing else FAILING_MESSAGE,
            is_error=not passing,
        )


async def badge_response(
    aggregator: Aggregator, base_url: str, jobsets: str, jobs: str
) -> Tuple[int, EndpointResponse]:
    try:
        result = await aggregator.check(base_url, jobsets, jobs)
    except EndpointError as e:
        error_counter.labels(context=e.label).inc()
        logger.warning(
            "%s while checking %s %s:%s: %s", e.label, base_url, jobsets, jobs, e
        )
        return 500, e.to_response()

    logger.info("%s %s -> %s", base_url, result.label, result.message)
    return 200, result
