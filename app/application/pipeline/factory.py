from __future__ import annotations

from typing import Iterable, List, Optional

from app.application.pipeline.base import Middleware, Pipeline, Step


class PipelineFactory:
    """Fluent pipeline builder; every added step is wrapped by the middlewares
    in the order they were registered.

    Example:
        pipeline = PipelineFactory(middlewares=[mw]).add(first).add(second).build()
    """

    def __init__(self, *, middlewares: Optional[Iterable[Middleware]] = None):
        self._middlewares: List[Middleware] = list(middlewares or ())
        self._steps: List[Step] = []

    def use(self, middleware: Middleware) -> "PipelineFactory":
        """Register a middleware for steps added from now on."""
        self._middlewares.append(middleware)
        return self

    def add(self, step: Step) -> "PipelineFactory":
        for middleware in self._middlewares:
            step = middleware(step)
        self._steps.append(step)
        return self

    def extend(self, steps: Iterable[Step]) -> "PipelineFactory":
        for step in steps:
            self.add(step)
        return self

    def build(self) -> Pipeline:
        return Pipeline(self._steps)
