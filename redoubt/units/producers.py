"""
Built-in producers.

Producers turn an identity into tasks and products. Every string field
in a producer spec is a template (see :mod:`redoubt.interpolation`),
parsed at startup and rendered per request.
"""
import logging
from pathlib import Path
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from redoubt.api.models import Product, Task
from redoubt.interpolation import Environment, Template

from .base import Producer, UnitSpec

logger = logging.getLogger(__name__)


class TaskTemplate(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(min_length=1)
    params: Dict[str, str] = Field(default_factory=dict)


class ProductTemplate(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    content: str = ""


class StaticSpec(UnitSpec):
    tasks: List[TaskTemplate] = Field(default_factory=list)
    products: List[ProductTemplate] = Field(default_factory=list)


class StaticProducer(Producer):
    """Emits the tasks and products written in the policy document."""

    type = "static"
    Spec = StaticSpec

    def __init__(self, spec: StaticSpec):
        super().__init__(spec)
        self._tasks = [
            (Template(t.id), {k: Template(v) for k, v in t.params.items()})
            for t in spec.tasks
        ]
        self._products = [(Template(p.name), Template(p.content)) for p in spec.products]

    def produce(self, env: Environment) -> Tuple[List[Task], List[Product]]:
        tasks = [
            Task(id=id_.render(env), params={k: v.render(env) for k, v in params.items()})
            for id_, params in self._tasks
        ]
        products = [
            Product(name=name.render(env), content=content.render(env))
            for name, content in self._products
        ]
        return tasks, products


class FileSpec(UnitSpec):
    path: Path = Field(description="File whose text becomes the product content")
    name: str = Field(min_length=1, description="Product name template")


class FileProducer(Producer):
    """
    Emits one product whose content is a file rendered for the identity.

    The file is read once, at construction. Editing it afterwards has no
    effect until the service is restarted.
    """

    type = "file"
    Spec = FileSpec

    def __init__(self, spec: FileSpec):
        super().__init__(spec)
        try:
            text = spec.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ValueError(f"cannot read '{spec.path}': {e}") from e
        logger.debug("Loaded %d bytes from %s", len(text), spec.path)
        self._name = Template(spec.name)
        self._content = Template(text)

    def produce(self, env: Environment) -> Tuple[List[Task], List[Product]]:
        return [], [Product(name=self._name.render(env), content=self._content.render(env))]
