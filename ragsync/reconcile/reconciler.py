"""Freshness reconciliation: bring a project's stored content in line with its files.

compute_plan  -> pure diff of a manifest against a filesystem snapshot
apply_plan    -> push the diff into the content store, path by path
drop_project  -> forget a project entirely

The Reconciler composes the three with a walker, a manifest registry and
per-project locks. A full rebuild is a reconciliation against an empty
manifest, not a separate code path.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from ragsync.config import FINGERPRINT_ALGORITHM
from ragsync.core.errors import IndexerUnavailable, ManifestCorrupt, RAGSyncError
from ragsync.crawl.fingerprint import fingerprint_bytes
from ragsync.crawl.walker import FilesystemWalker
from ragsync.models.manifest import (
    STALE_FINGERPRINT,
    ManifestEntry,
    ProjectManifest,
    ProjectState,
    utc_now,
)
from ragsync.models.plan import ApplyResult, ReconciliationPlan
from ragsync.models.snapshot import FilesystemSnapshot
from ragsync.pipeline.protocols import ContentIndexer, ManifestRegistry
from ragsync.reconcile.locks import ProjectLocks

logger = logging.getLogger(__name__)

StopCheck = Callable[[], bool]
ContentReader = Callable[[Path, str], bytes]


def read_file(root: Path, path: str) -> bytes:
    """Default content reader: the file at root/path."""
    return (root / path).read_bytes()


def compute_plan(
    manifest: ProjectManifest | None,
    snapshot: FilesystemSnapshot,
) -> ReconciliationPlan:
    """Diff a manifest against a snapshot.

    Single pass over the union of both path sets. A path present in both
    whose snapshot entry is unreadable is planned for removal: stale
    content is dropped rather than kept or replaced with garbage.

    Args:
        manifest: What the store holds. None means nothing.
        snapshot: What the filesystem holds now.

    Returns:
        Plan whose action sets are disjoint and which accounts for every
        path in either input exactly once.

    Raises:
        ValueError: The manifest and snapshot belong to different projects.
    """
    if manifest is not None and manifest.project_id != snapshot.project_id:
        raise ValueError(
            f"Manifest project {manifest.project_id!r} does not match "
            f"snapshot project {snapshot.project_id!r}"
        )

    known = manifest.entries if manifest is not None else {}
    plan = ReconciliationPlan(project_id=snapshot.project_id, root=snapshot.root)

    for path, entry in snapshot.entries.items():
        previous = known.get(path)
        if entry.fingerprint is None:
            if previous is not None:
                plan.to_remove.append(path)
            else:
                plan.unreadable.append(path)
        elif previous is None:
            plan.to_add.append(path)
            plan.fingerprints[path] = entry.fingerprint
        elif previous.fingerprint != entry.fingerprint:
            plan.to_update.append(path)
            plan.fingerprints[path] = entry.fingerprint
        else:
            plan.unchanged.append(path)

    for path in known:
        if path not in snapshot.entries:
            plan.to_remove.append(path)

    logger.info(
        "plan_computed project=%s %s, unreadable %d",
        plan.project_id,
        plan.summary(),
        len(plan.unreadable),
    )
    return plan


def _indexed_fingerprint(planned: str, content: bytes, project_id: str, path: str) -> str:
    """Fingerprint to record for content that was just indexed.

    If the file changed between the walk and the read, the store now holds
    the newer content; record its fingerprint so the manifest describes
    what the store has. Only comparable when the plan used the same
    algorithm as fingerprint_bytes.
    """
    if not planned.startswith(f"{FINGERPRINT_ALGORITHM}:"):
        return planned
    actual = fingerprint_bytes(content)
    if actual != planned:
        logger.info("content_changed_during_walk project=%s path=%s", project_id, path)
    return actual


def apply_plan(
    plan: ReconciliationPlan,
    store: ContentIndexer,
    manifest: ProjectManifest,
    *,
    should_stop: StopCheck | None = None,
    read_content: ContentReader = read_file,
) -> ApplyResult:
    """Apply a plan to the store and mirror confirmed changes into the manifest.

    Removals run first, then additions, then updates. A manifest entry is
    written only after its upsert succeeded, so the manifest never claims
    content the store lacks. Per-path failures are recorded: a failed add
    stays out of the manifest, a failed update or removal keeps its entry,
    so the next reconciliation retries the path or removes it if it is gone.

    The manifest is mutated in place but not persisted.

    Args:
        plan: Output of compute_plan.
        store: Content indexer to write to.
        manifest: Manifest the plan was computed against.
        should_stop: Polled between paths; True stops early with a partial result.
        read_content: Reads (root, path) -> bytes for additions and updates.

    Returns:
        ApplyResult listing applied, failed and skipped paths.

    Raises:
        IndexerUnavailable: The store failed. Paths applied before the
            failure stay applied (and in the manifest); the partial result
            is attached as the exception's .result.
        ValueError: The plan and manifest belong to different projects.
    """
    if plan.project_id != manifest.project_id:
        raise ValueError(
            f"Plan project {plan.project_id!r} does not match "
            f"manifest project {manifest.project_id!r}"
        )

    project_id = plan.project_id
    generation = manifest.generation + 1
    result = ApplyResult(project_id=project_id)

    ops: list[tuple[str, str]] = (
        [("remove", p) for p in plan.to_remove]
        + [("add", p) for p in plan.to_add]
        + [("update", p) for p in plan.to_update]
    )
    logger.debug("apply_started project=%s actions=%d", project_id, plan.action_count)

    try:
        for i, (kind, path) in enumerate(ops):
            if should_stop is not None and should_stop():
                result.skipped = [p for _, p in ops[i:]]
                logger.info("apply_stopped project=%s remaining=%d", project_id, len(result.skipped))
                break

            try:
                if kind == "remove":
                    store.delete_where(project_id, path)
                    manifest.entries.pop(path, None)
                    result.removed.append(path)
                    continue

                content = read_content(plan.root, path)
                store.upsert(project_id, path, content)
                fingerprint = _indexed_fingerprint(plan.fingerprints[path], content, project_id, path)
                manifest.entries[path] = ManifestEntry(fingerprint=fingerprint, last_seen=generation)
                if kind == "add":
                    result.added.append(path)
                else:
                    result.updated.append(path)

            except IndexerUnavailable as e:
                result.failed[path] = str(e)
                if kind == "update":
                    _mark_stale(manifest, path)
                result.skipped = [p for _, p in ops[i + 1:]]
                result.aborted = True
                result.error = str(e)
                e.result = result
                logger.error(
                    "apply_aborted project=%s path=%s applied=%d skipped=%d reason=%s",
                    project_id,
                    path,
                    result.applied_count,
                    len(result.skipped),
                    e.reason,
                )
                raise

            except (RAGSyncError, OSError) as e:
                # The previous entry stays, so the path is re-planned (or removed if gone)
                result.failed[path] = str(e)
                logger.warning("path_failed project=%s path=%s op=%s reason=%s", project_id, path, kind, e)
    finally:
        if result.applied_count or result.failed:
            manifest.generation = generation
            manifest.updated_at = utc_now()
            if not manifest.created_at:
                manifest.created_at = manifest.updated_at

    logger.info("plan_applied project=%s %s", project_id, result.summary())
    return result


def _mark_stale(manifest: ProjectManifest, path: str) -> None:
    """Keep the path tracked but force it to be re-planned.

    After an outage mid-upsert the store may hold a mix of old and new
    rows. The entry must survive so a later deletion of the file still
    plans a removal.
    """
    previous = manifest.entries.get(path)
    if previous is not None:
        manifest.entries[path] = ManifestEntry(fingerprint=STALE_FINGERPRINT, last_seen=previous.last_seen)


def drop_project(
    project_id: str,
    store: ContentIndexer,
    manifest_registry: ManifestRegistry,
) -> None:
    """Remove every stored row of a project and delete its manifest.

    The store is cleared first: if that fails the manifest survives and
    still describes what the store holds.
    """
    deleted = store.delete_where(project_id)
    manifest_registry.drop(project_id)
    logger.info("project_dropped project=%s rows=%d", project_id, deleted)


class Reconciler:
    """Walks, plans, applies and persists, one project at a time.

    Components are injected. The store handle is owned by
    the caller and lives until it is explicitly dropped.
    """

    def __init__(
        self,
        store: ContentIndexer,
        registry: ManifestRegistry,
        walker: FilesystemWalker | None = None,
        locks: ProjectLocks | None = None,
    ) -> None:
        """Initialize the reconciler.

        Args:
            store: Content indexer shared by all projects.
            registry: Durable manifest storage.
            walker: Snapshot producer. Defaults to FilesystemWalker().
            locks: Per-project locks. Share one instance between
                   reconcilers that use the same registry.
        """
        self._store = store
        self._registry = registry
        self._walker = walker or FilesystemWalker()
        self._locks = locks if locks is not None else ProjectLocks()

    @property
    def locks(self) -> ProjectLocks:
        return self._locks

    def state(self, project_id: str) -> ProjectState:
        """INGESTED if the registry holds a readable manifest for the project."""
        try:
            manifest = self._registry.load(project_id)
        except ManifestCorrupt:
            return ProjectState.UNINITIALIZED
        return ProjectState.INGESTED if manifest is not None else ProjectState.UNINITIALIZED

    def plan(self, project_id: str, root: Path) -> ReconciliationPlan:
        """Dry run: compute what reconcile() would do, without applying it."""
        _check_project_id(project_id)
        with self._locks.hold(project_id):
            try:
                manifest = self._registry.load(project_id)
            except ManifestCorrupt:
                manifest = None
            snapshot = self._walker.snapshot(project_id, Path(root))
            return compute_plan(manifest, snapshot)

    def reconcile(
        self,
        project_id: str,
        root: Path,
        *,
        should_stop: StopCheck | None = None,
    ) -> ApplyResult:
        """Bring the store in line with the files under root.

        Raises:
            IndexerUnavailable: Store failed mid-way; confirmed paths were
                persisted to the manifest before re-raising.
            CrawlError: root cannot be walked.
        """
        _check_project_id(project_id)
        with self._locks.hold(project_id):
            return self._reconcile(project_id, Path(root), should_stop)

    def rebuild(
        self,
        project_id: str,
        root: Path,
        *,
        should_stop: StopCheck | None = None,
    ) -> ApplyResult:
        """Drop the project, then reconcile it from an empty manifest."""
        _check_project_id(project_id)
        with self._locks.hold(project_id):
            drop_project(project_id, self._store, self._registry)
            return self._reconcile(project_id, Path(root), should_stop)

    def drop(self, project_id: str) -> None:
        """Forget a project: store rows and manifest."""
        _check_project_id(project_id)
        with self._locks.hold(project_id):
            drop_project(project_id, self._store, self._registry)

    def _load(self, project_id: str) -> ProjectManifest | None:
        try:
            return self._registry.load(project_id)
        except ManifestCorrupt as e:
            logger.error("manifest_corrupt project=%s reason=%s action=reingest", project_id, e.reason)
            drop_project(project_id, self._store, self._registry)
            return None

    def _reconcile(
        self,
        project_id: str,
        root: Path,
        should_stop: StopCheck | None,
    ) -> ApplyResult:
        previous = self._load(project_id)
        manifest = previous if previous is not None else ProjectManifest(project_id=project_id)
        logger.info(
            "reconcile_started project=%s root=%s known=%d",
            project_id,
            root,
            len(manifest),
        )

        snapshot = self._walker.snapshot(project_id, root)
        plan = compute_plan(manifest, snapshot)

        try:
            result = apply_plan(plan, self._store, manifest, should_stop=should_stop)
        except IndexerUnavailable:
            if previous is not None or len(manifest):
                self._registry.save(manifest)
            raise

        # A first run where nothing landed leaves the project uninitialized
        if previous is not None or len(manifest) or result.success:
            if not manifest.created_at:
                manifest.created_at = utc_now()
                manifest.updated_at = manifest.created_at
            self._registry.save(manifest)
        return result


def _check_project_id(project_id: str) -> None:
    if not isinstance(project_id, str) or not project_id.strip():
        raise ValueError(f"Invalid project id: {project_id!r}")
