from dataclasses import dataclass
from typing import List, Optional

import pydantic


class Model(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)


@dataclass(frozen=True)
class Jobset:
    project: str
    name: str

    def __str__(self) -> str:
        return f"{self.project}:{self.name}"


class Project(Model):
    """Returned in a list from GET hydra_base_url"""

    name: str
    jobsets: List[str] = pydantic.Field(default_factory=list)

    def jobset_identities(self) -> List[Jobset]:
        return [Jobset(project=self.name, name=jobset) for jobset in self.jobsets]


class JobsetEvaluation(Model):
    id: Optional[int] = None
    builds: List[int]


class JobsetEvalList(Model):
    """Returned from GET jobset/:project/:jobset/evals, most recent first"""

    evals: List[JobsetEvaluation]


class Build(Model):
    """Returned from GET build/:id"""

    job: str
    finished: int
    # null while the build has not finished
    buildstatus: Optional[int] = None

    @property
    def is_finished(self) -> bool:
        return self.finished == 1

    @property
    def is_success(self) -> bool:
        return self.buildstatus == 0
