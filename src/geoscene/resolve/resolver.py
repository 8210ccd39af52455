"""
CONTRACT: inline
ROLE: Fetch and parse every GeoCast file referenced by a scene, writing each
result into its reserved camera slot.

INPUTS:
  - SceneDescription with PENDING slots
  - fetch_text(path) coroutine
OUTPUTS:
  - CameraDescription written into scene.<collection>[entry].camera_slots[slot]

CONFIG KEYS:
  - resolver.require_depth_range: forwarded to parse_geocast (default true)

PERF / TIMING:
  - one asyncio task per slot, all in flight at once
  - parsing is synchronous; tasks only suspend inside fetch_text

FAILURE MODES:
  - FetchError -> ResolveFailure issue, slot stays PENDING
  - FormatError -> ResolveFailure issue, slot stays PENDING
  - any other exception -> ResolveFailure issue, slot stays PENDING
  - completion after cancel() -> dropped -> log stale_completion

LOG EVENTS:
  - module=resolve.resolver, event=fetch_failed, payload keys=path, coord, error
  - module=resolve.resolver, event=parse_failed, payload keys=path, coord, error
  - module=resolve.resolver, event=task_failed, payload keys=path, coord, error
  - module=resolve.resolver, event=slot_resolved, payload keys=path, coord
  - module=resolve.resolver, event=stale_completion, payload keys=path, coord

TESTS:
  - tests/test_resolver.py

CONTRACT DETAILS:
# Resolution

- Each task receives its SlotCoordinate when it is spawned and writes only
  that slot. No two tasks share a coordinate, so no locking is needed.
- Completion order is unspecified.
- The resolver does not signal "scene complete"; callers gather `tasks`.
- Failed fetches are not retried.
- Every SceneBinding carries its own cancellation epoch. `cancel(scene)`
  drops completions for that scene only; `cancel()` drops them for all.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from geoscene.errors import FetchError, FormatError, ResolveFailure, record_issue
from geoscene.formats.geocast import parse_geocast
from geoscene.formats.model import PENDING, CameraDescription, SceneDescription, SlotCoordinate


_MODULE = "resolve.resolver"

FetchText = Callable[[str], Awaitable[str]]

# Casts resolved from a scene must carry a depth range unless the caller says otherwise.
DEFAULT_PARSE_OPTIONS: Dict[str, Any] = {"require_depth_range": True}


class SceneBinding:
    """Cast-reference callback for parse_geoscene.

    Tasks spawned through the binding wait for `bind(scene)` before writing,
    so fetching can start while the scene document is still being parsed.
    """

    def __init__(self, resolver: "AsyncResolver") -> None:
        self._resolver = resolver
        self.epoch = 0
        self.scene_future: "asyncio.Future[SceneDescription]" = asyncio.get_running_loop().create_future()

    def __call__(self, coord: SlotCoordinate, path: str) -> None:
        self._resolver._spawn(self, coord, path)

    def bind(self, scene: SceneDescription) -> None:
        if not self.scene_future.done():
            self.scene_future.set_result(scene)

    def abandon(self) -> None:
        """Release waiting tasks when the scene could not be parsed."""
        if not self.scene_future.done():
            self.scene_future.cancel()

    def cancel(self) -> None:
        """Drop the results of every task spawned through this binding so far."""
        self.epoch += 1

    def holds(self, scene: SceneDescription) -> bool:
        future = self.scene_future
        return future.done() and not future.cancelled() and future.result() is scene


class AsyncResolver:
    """Resolve GeoCast references of one or more scenes."""

    def __init__(
        self,
        fetch_text: FetchText,
        *,
        parse_options: Optional[Dict[str, Any]] = None,
        issues: Optional[List[Any]] = None,
        logger: Optional[Any] = None,
    ) -> None:
        self._fetch_text = fetch_text
        self._parse_options = {**DEFAULT_PARSE_OPTIONS, **(parse_options or {})}
        self._logger = logger
        self._bindings: List[SceneBinding] = []
        self.issues: List[Any] = issues if issues is not None else []
        self.tasks: List["asyncio.Task[None]"] = []

    def attach(self) -> SceneBinding:
        """Return a callback to pass as parse_geoscene(on_cast_reference=...)."""
        return self._binding()

    def resolve(self, scene: SceneDescription) -> List["asyncio.Task[None]"]:
        """Schedule every PENDING slot of an already parsed scene."""
        binding = self._binding(scene)
        spawned = []
        for coord, path in scene.slot_coordinates():
            entry = scene.collection(coord.collection_kind)[coord.entry_index]
            if entry.camera_slots[coord.slot_index] is PENDING:
                spawned.append(self._spawn(binding, coord, path))
        return spawned

    def schedule(self, scene: SceneDescription, coord: SlotCoordinate, path: str) -> "asyncio.Task[None]":
        return self._spawn(self._binding(scene), coord, path)

    def cancel(self, scene: Optional[SceneDescription] = None) -> None:
        """Drop the results of tasks spawned so far, for `scene` or for all scenes.

        Tasks keep running to completion but no longer write their slots.
        Bindings not yet bound to a scene are only reached by `cancel()`.
        """
        for binding in self._bindings:
            if scene is None or binding.holds(scene):
                binding.cancel()

    async def wait(self) -> None:
        """Wait for every spawned task; failures are recorded, not raised."""
        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)

    def _binding(self, scene: Optional[SceneDescription] = None) -> SceneBinding:
        binding = SceneBinding(self)
        if scene is not None:
            binding.bind(scene)
        self._bindings.append(binding)
        return binding

    def _spawn(self, binding: SceneBinding, coord: SlotCoordinate, path: str) -> "asyncio.Task[None]":
        task = asyncio.get_running_loop().create_task(self._resolve_slot(binding, coord, path, binding.epoch))
        task.set_name(f"geocast:{coord.collection_kind.value}:{coord.entry_index}:{coord.slot_index}")
        task.add_done_callback(self._task_done)
        self.tasks.append(task)
        return task

    async def _resolve_slot(self, binding: SceneBinding, coord: SlotCoordinate, path: str, epoch: int) -> None:
        try:
            text = await self._fetch_text(path)
        except FetchError as exc:
            self._fail(coord, path, exc, "fetch_failed")
            return
        except Exception as exc:
            self._fail(coord, path, exc, "task_failed")
            return
        scene = await binding.scene_future
        if epoch != binding.epoch:
            self._log("info", "stale_completion", {"path": path, "coord": _coord_payload(coord)})
            return
        try:
            camera = parse_geocast(text, issues=self.issues, logger=self._logger, **self._parse_options)
        except FormatError as exc:
            self._fail(coord, path, exc, "parse_failed")
            return
        except Exception as exc:
            self._fail(coord, path, exc, "task_failed")
            return
        self._write(scene, coord, path, camera)

    def _write(self, scene: SceneDescription, coord: SlotCoordinate, path: str, camera: CameraDescription) -> None:
        slots = scene.collection(coord.collection_kind)[coord.entry_index].camera_slots
        if slots[coord.slot_index] is not PENDING:
            self._log("warning", "slot_already_resolved", {"path": path, "coord": _coord_payload(coord)})
            return
        slots[coord.slot_index] = camera
        self._log("debug", "slot_resolved", {"path": path, "coord": _coord_payload(coord)})

    def _fail(self, coord: SlotCoordinate, path: str, error: Exception, event: str) -> None:
        record_issue(
            self.issues,
            ResolveFailure(coord, path, error),
            self._logger,
            _MODULE,
            event,
            {"path": path, "coord": _coord_payload(coord), "error": str(error) or repr(error)},
        )

    def _task_done(self, task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._log("error", "task_failed", {"task": task.get_name(), "error": repr(exc)})

    def _log(self, level: str, event: str, payload: Dict[str, Any]) -> None:
        if self._logger is not None:
            self._logger.emit(level, _MODULE, event, payload)


def _coord_payload(coord: SlotCoordinate) -> List[Any]:
    return [coord.collection_kind.value, coord.entry_index, coord.slot_index]
