"""
HubSpoke Server - Changeset Engine

This module validates and applies changesets: ordered batches of site
actions that are applied to the site registry all-or-nothing and
recorded as SiteChange audit entries.

Every public method returns an OperationResult; errors raised while
validating or storing a changeset never leave the engine as exceptions.
"""

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from exceptions import (
    HubSpokeError, NotFoundError, HubSpokeValidationError, InvalidStateError,
    RegistryBusyError, StaleChangesetError, StorageFailureError
)
from hierarchy import ClassifyAll, ValidateAssociate, ValidateParentReference
from csv_transform import TransformRows
from models.database import Changeset, SiteChange
from models.infrastructure import (
    SiteRecord, SiteAction, ActionKind,
    CreateSite, UpdateSite, DeleteSite, AssociateSite, DisassociateSite,
    ActionToPayload, ActionFromPayload,
    ChangesetLock, OperationResult, CsvSiteRow
)
from site_registry import SiteRegistry

logger = logging.getLogger(__name__)

# Changeset statuses
STATUS_PENDING = "PENDING"
STATUS_COMMITTED = "COMMITTED"
STATUS_REVERTED = "REVERTED"

# Delete policies
DELETE_POLICY_CASCADE = "cascade"
DELETE_POLICY_ORPHAN = "orphan"

# Url held by a site while its row moves to a new url within one transaction
PLACEHOLDER_URL_PREFIX = "urn:hubspoke:moving:"

# An action after it was applied, with the state it replaced
AppliedAction = Tuple[SiteAction, Optional[Dict[str, Any]]]


def _IsoFormat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def ChangesetToDict(changeset: Changeset) -> Dict[str, Any]:
    """Response representation of a changeset and its ordered site changes"""
    return {
        "changeset_id": changeset.changeset_id,
        "user_id": changeset.user_id,
        "title": changeset.title,
        "description": changeset.description,
        "status": changeset.status,
        "created_at_utc": _IsoFormat(changeset.created_at_utc),
        "updated_at_utc": _IsoFormat(changeset.updated_at_utc),
        "reverted_by": changeset.reverted_by,
        "proposed_actions": changeset.proposed_actions or [],
        "site_changes": [
            {
                "change_id": change.change_id,
                "sequence": change.sequence,
                "site_id": change.site_id,
                "action": change.action,
                "old_data": change.old_data,
                "new_data": change.new_data,
                "created_at_utc": _IsoFormat(change.created_at_utc),
            }
            for change in changeset.site_changes
        ],
    }


class ChangesetEngine:
    """
    Owns all mutations of the site registry

    Mutations are serialized by a single registry lock. Each changeset is
    applied to a snapshot of the registry first; the snapshot is written to
    the database in one transaction and only then swapped into the registry,
    so readers never observe a partially applied changeset.
    """

    def __init__(self, db_manager, registry: SiteRegistry):
        """
        Args:
            db_manager: Persistence collaborator (DatabaseManager)
            registry: Live site registry, already loaded from the database
        """
        self.db_manager = db_manager
        self.registry = registry
        self._mutation_lock = threading.Lock()
        self._current_lock: Optional[ChangesetLock] = None

    # ==================== Settings and locking ====================

    def _LoadSettings(self) -> Dict[str, str]:
        session = self.db_manager.GetSession()
        try:
            return self.db_manager.GetSettings(session)
        except SQLAlchemyError as e:
            raise StorageFailureError(f"Failed to read settings: {e}")
        finally:
            session.close()

    def _ResolveUser(self, user_id: Optional[str], settings: Dict[str, str]) -> str:
        return user_id or settings.get("default_user_id") or "system"

    @contextmanager
    def _Locked(self, user_id: str, operation: str, title: str, timeout_seconds: float):
        """
        Hold the registry lock for the duration of the block

        Raises:
            RegistryBusyError: lock not acquired within timeout_seconds
        """
        if not self._mutation_lock.acquire(timeout=max(timeout_seconds, 0)):
            holder = self._current_lock
            if holder:
                message = (
                    f"Registry is busy - {holder.user_id} is applying '{holder.title}' "
                    f"(started {holder.ElapsedSeconds()} seconds ago)"
                )
            else:
                message = "Registry is busy"
            raise RegistryBusyError(message)

        self._current_lock = ChangesetLock(
            user_id=user_id,
            operation=operation,
            title=title,
            locked_at_utc=datetime.now(timezone.utc)
        )
        logger.debug(f"Registry lock acquired by '{user_id}' for {operation} '{title}'")
        try:
            yield
        finally:
            self._current_lock = None
            self._mutation_lock.release()
            logger.debug(f"Registry lock released by '{user_id}'")

    def GetActiveLockInfo(self) -> Optional[Dict[str, Any]]:
        """
        Get information about the current registry lock

        Returns:
            Dictionary with lock info, or None if no lock is held
        """
        lock = self._current_lock
        if lock is None:
            return None

        return {
            "locked": True,
            "user": lock.user_id,
            "operation": lock.operation,
            "title": lock.title,
            "started_ago_seconds": lock.ElapsedSeconds()
        }

    # ==================== Applying actions ====================

    def _ApplyAction(self, snapshot: SiteRegistry, action: SiteAction, delete_policy: str) -> Optional[Dict[str, Any]]:
        """
        Apply one action to a snapshot

        Returns:
            The audit old_data for the action

        Raises:
            HubSpokeError: the action is not valid against the snapshot
        """
        if isinstance(action, CreateSite):
            if action.site_id in snapshot:
                raise HubSpokeValidationError(f"Site id '{action.site_id}' already exists")
            error = ValidateParentReference(snapshot, action.site_id, action.parent_hub_id)
            if error:
                raise error
            snapshot.Insert(SiteRecord(
                site_id=action.site_id,
                name=action.name,
                url=action.url,
                parent_hub_id=action.parent_hub_id,
                division=action.division,
                last_activity=action.last_activity,
                file_count=action.file_count,
                storage_used=action.storage_used,
                storage_percentage=action.storage_percentage,
                is_associated_with_team=action.is_associated_with_team,
                team_name=action.team_name,
                created_by=action.created_by,
            ))
            return None

        site = snapshot.Get(action.site_id)
        if site is None:
            raise NotFoundError(f"Site '{action.site_id}' not found")

        if isinstance(action, UpdateSite):
            old_data = site.ToSnapshot()
            snapshot.Update(action.site_id, **action.changes)
            return {key: old_data[key] for key in action.changes}

        if isinstance(action, DeleteSite):
            old_data = site.ToSnapshot()
            if delete_policy == DELETE_POLICY_ORPHAN:
                children = snapshot.Children(site.site_id)
                for child in children:
                    snapshot.Update(child.site_id, parent_hub_id=None)
                old_data["orphaned"] = [child.site_id for child in children]
            else:
                descendants = snapshot.Descendants(site.site_id)
                for descendant in reversed(descendants):
                    snapshot.Delete(descendant.site_id)
                old_data["cascade"] = [descendant.ToSnapshot() for descendant in descendants]
            snapshot.Delete(site.site_id)
            return old_data

        if isinstance(action, AssociateSite):
            error = ValidateAssociate(snapshot, action.site_id, action.parent_hub_id)
            if error:
                raise error
            snapshot.Update(action.site_id, parent_hub_id=action.parent_hub_id)
            return {"parent_hub_id": site.parent_hub_id}

        if isinstance(action, DisassociateSite):
            if not site.HasParent():
                raise HubSpokeValidationError(f"Site '{site.name}' is not associated with a hub")
            snapshot.Update(action.site_id, parent_hub_id=None)
            return {"parent_hub_id": site.parent_hub_id}

        raise HubSpokeValidationError(f"Unsupported action: {action!r}")

    def _ApplyActions(self, snapshot: SiteRegistry, actions: Sequence[SiteAction],
                      delete_policy: str) -> List[AppliedAction]:
        """
        Apply actions in order to a snapshot, then reclassify every site

        Each action sees the effect of the actions before it.

        Raises:
            HubSpokeError: first failing action, with action_index set
        """
        if not actions:
            raise HubSpokeValidationError("Changeset contains no actions")

        applied = []
        for index, action in enumerate(actions):
            try:
                old_data = self._ApplyAction(snapshot, action, delete_policy)
            except HubSpokeError as e:
                e.action_index = index
                raise
            applied.append((action, old_data))

        self._Reclassify(snapshot)
        return applied

    @staticmethod
    def _Reclassify(snapshot: SiteRegistry) -> None:
        """Store the derived site type on every site whose type changed"""
        for site_id, site_type in ClassifyAll(snapshot).items():
            if snapshot.Get(site_id).site_type != site_type:
                snapshot.Update(site_id, site_type=site_type)

    # ==================== Persistence ====================

    def _WriteRegistryDiff(self, session, snapshot: SiteRegistry) -> None:
        """
        Write the difference between the live registry and a snapshot

        Removed sites are deleted first. Sites whose url changed are parked
        on a placeholder url and flushed before the final records are
        written, so urls swapped or rotated within one changeset never hit
        the unique url index twice.
        """
        snapshot_ids = {site.site_id for site in snapshot.All()}
        for site in self.registry.All():
            if site.site_id not in snapshot_ids:
                self.db_manager.DeleteSite(session, site.site_id)
        session.flush()

        changed = [record for record in snapshot.All() if self.registry.Get(record.site_id) != record]

        moved = [
            record for record in changed
            if record.site_id in self.registry and self.registry.Get(record.site_id).url != record.url
        ]
        for record in moved:
            self.db_manager.SaveSite(session, replace(record, url=f"{PLACEHOLDER_URL_PREFIX}{record.site_id}"))
        if moved:
            session.flush()

        for record in changed:
            self.db_manager.SaveSite(session, record)

    @staticmethod
    def _BuildSiteChange(changeset: Changeset, sequence: int, action: SiteAction,
                         old_data: Optional[Dict[str, Any]]) -> SiteChange:
        return SiteChange(
            changeset=changeset,
            sequence=sequence,
            site_id=action.site_id,
            action=action.kind.value,
            old_data=old_data,
            new_data=ActionToPayload(action),
            created_at_utc=datetime.now(timezone.utc),
        )

    @staticmethod
    def _ProposedActions(actions: Sequence[SiteAction]) -> List[Dict[str, Any]]:
        """JSON form of staged actions, read back by Commit"""
        return [
            {"kind": action.kind.value, "site_id": action.site_id, "payload": ActionToPayload(action)}
            for action in actions
        ]

    def _StoreNewChangeset(self, user_id: str, title: str, description: str,
                           applied: List[AppliedAction], snapshot: Optional[SiteRegistry],
                           reverts_changeset_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Store a new changeset in one database transaction

        With a snapshot the changeset is COMMITTED: the registry diff and one
        SiteChange per applied action are written. Without one it is PENDING
        and only its proposed actions are kept.

        Args:
            reverts_changeset_id: Committed changeset this one compensates;
                                  marked as reverted in the same transaction

        Raises:
            StorageFailureError: the transaction was rolled back
        """
        session = self.db_manager.GetSession()
        try:
            now = datetime.now(timezone.utc)
            changeset = Changeset(
                changeset_id=str(uuid.uuid4()),
                user_id=user_id,
                title=title,
                description=description or "",
                status=STATUS_PENDING if snapshot is None else STATUS_COMMITTED,
                created_at_utc=now,
                updated_at_utc=now,
            )

            if snapshot is None:
                changeset.proposed_actions = self._ProposedActions([action for action, _ in applied])
                changeset = self.db_manager.SaveChangeset(session, changeset)
            else:
                self._WriteRegistryDiff(session, snapshot)
                changeset = self.db_manager.SaveChangeset(session, changeset)
                for sequence, (action, old_data) in enumerate(applied):
                    self.db_manager.AppendSiteChange(session, self._BuildSiteChange(changeset, sequence, action, old_data))

            if reverts_changeset_id is not None:
                original = self.db_manager.GetChangeset(session, reverts_changeset_id)
                original.reverted_by = changeset.changeset_id
                self.db_manager.SaveChangeset(session, original)

            session.commit()
            return ChangesetToDict(changeset)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to store changeset '{title}': {str(e)}")
            raise StorageFailureError(f"Failed to store changeset: {e}")
        finally:
            session.close()

    def _Propose(self, user_id: str, title: str, description: str, actions: Sequence[SiteAction],
                 stage: bool, delete_policy: str, reverts_changeset_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Validate, store and (unless staged) apply a batch; caller holds the lock

        Raises:
            HubSpokeError: the batch is invalid or could not be stored
        """
        snapshot = self.registry.Snapshot()
        applied = self._ApplyActions(snapshot, actions, delete_policy)

        if stage:
            changeset = self._StoreNewChangeset(user_id, title, description, applied, None)
            logger.info(f"Changeset {changeset['changeset_id']} '{title}' staged by {user_id} ({len(applied)} actions)")
            return changeset

        changeset = self._StoreNewChangeset(user_id, title, description, applied, snapshot, reverts_changeset_id)
        self.registry.Replace(snapshot)
        logger.info(f"Changeset {changeset['changeset_id']} '{title}' committed by {user_id} ({len(applied)} actions)")
        return changeset

    # ==================== Public operations ====================

    def ProposeChangeset(self, user_id: Optional[str], title: str, description: str,
                         actions: Sequence[SiteAction], stage: bool = False) -> OperationResult:
        """
        Validate a batch of actions and apply it (or stage it as PENDING)

        Args:
            user_id: User proposing the changeset (default user if empty)
            title: Changeset title
            description: Changeset description
            actions: Ordered actions; each is validated against the registry
                     with the effect of the previous actions applied
            stage: Store as PENDING without touching the registry

        Returns:
            OperationResult with the changeset as value; on failure the
            error kind and index of the failing action, and nothing changed
        """
        try:
            settings = self._LoadSettings()
            user_id = self._ResolveUser(user_id, settings)
            timeout = float(settings.get("lock_timeout_seconds", 5))
            delete_policy = settings.get("delete_policy", DELETE_POLICY_CASCADE)

            with self._Locked(user_id, "stage" if stage else "propose", title, timeout):
                changeset = self._Propose(user_id, title, description, actions, stage, delete_policy)

            return OperationResult.Ok(changeset)

        except HubSpokeError as e:
            logger.warning(f"Changeset '{title}' rejected: {e.kind.value} at action {e.action_index}: {e.message}")
            return OperationResult.Fail(e)

    def Commit(self, changeset_id: str) -> OperationResult:
        """
        Apply a PENDING changeset

        Its staged actions are re-validated against the current registry,
        which may have changed since the changeset was proposed. The
        SiteChange rows are written now, with the state replaced at commit.

        Returns:
            OperationResult with the committed changeset; StaleChangeset if
            re-validation fails (the changeset stays PENDING), InvalidState
            if the changeset is not PENDING
        """
        try:
            settings = self._LoadSettings()
            timeout = float(settings.get("lock_timeout_seconds", 5))
            delete_policy = settings.get("delete_policy", DELETE_POLICY_CASCADE)

            with self._Locked(settings.get("default_user_id", "system"), "commit", changeset_id, timeout):
                session = self.db_manager.GetSession()
                try:
                    changeset = self.db_manager.GetChangeset(session, changeset_id)
                    if changeset is None:
                        raise NotFoundError(f"Changeset '{changeset_id}' not found")
                    if changeset.status != STATUS_PENDING:
                        raise InvalidStateError(f"Changeset '{changeset.title}' is {changeset.status}, not PENDING")

                    snapshot = self.registry.Snapshot()
                    try:
                        actions = [
                            ActionFromPayload(item["kind"], item["site_id"], item["payload"])
                            for item in changeset.proposed_actions or []
                        ]
                        applied = self._ApplyActions(snapshot, actions, delete_policy)
                    except HubSpokeError as e:
                        stale = StaleChangesetError(
                            f"Changeset '{changeset.title}' no longer applies: {e.kind.value}: {e.message}",
                            cause=e
                        )
                        stale.action_index = e.action_index
                        raise stale

                    self._WriteRegistryDiff(session, snapshot)
                    for sequence, (action, old_data) in enumerate(applied):
                        self.db_manager.AppendSiteChange(session, self._BuildSiteChange(changeset, sequence, action, old_data))
                    changeset.status = STATUS_COMMITTED
                    self.db_manager.SaveChangeset(session, changeset)
                    session.commit()
                    result = ChangesetToDict(changeset)
                except SQLAlchemyError as e:
                    session.rollback()
                    logger.error(f"Failed to commit changeset {changeset_id}: {str(e)}")
                    raise StorageFailureError(f"Failed to commit changeset: {e}")
                finally:
                    session.close()

                self.registry.Replace(snapshot)

            logger.info(f"Changeset {changeset_id} '{result['title']}' committed")
            return OperationResult.Ok(result)

        except HubSpokeError as e:
            logger.warning(f"Commit of changeset {changeset_id} rejected: {e.kind.value}: {e.message}")
            return OperationResult.Fail(e)

    def RevertChangeset(self, changeset_id: str, user_id: Optional[str] = None) -> OperationResult:
        """
        Revert a changeset

        A PENDING changeset is marked REVERTED without touching the registry.
        A COMMITTED changeset is undone by a new compensating changeset,
        which is returned; the original stays COMMITTED and records the
        compensating changeset in reverted_by. It cannot be reverted twice.
        Runs under the registry lock, like every other status change.

        Returns:
            OperationResult with the reverted or compensating changeset
        """
        try:
            settings = self._LoadSettings()
            user_id = self._ResolveUser(user_id, settings)
            timeout = float(settings.get("lock_timeout_seconds", 5))
            delete_policy = settings.get("delete_policy", DELETE_POLICY_CASCADE)

            with self._Locked(user_id, "revert", changeset_id, timeout):
                actions = None
                session = self.db_manager.GetSession()
                try:
                    changeset = self.db_manager.GetChangeset(session, changeset_id)
                    if changeset is None:
                        raise NotFoundError(f"Changeset '{changeset_id}' not found")

                    if changeset.status == STATUS_PENDING:
                        changeset.status = STATUS_REVERTED
                        self.db_manager.SaveChangeset(session, changeset)
                        session.commit()
                        result = ChangesetToDict(changeset)
                        logger.info(f"Pending changeset {changeset_id} '{changeset.title}' reverted")
                    elif changeset.status != STATUS_COMMITTED:
                        raise InvalidStateError(f"Changeset '{changeset.title}' is {changeset.status} and cannot be reverted")
                    elif changeset.reverted_by:
                        raise InvalidStateError(
                            f"Changeset '{changeset.title}' was already reverted by changeset {changeset.reverted_by}"
                        )
                    else:
                        revert_title = f"Revert: {changeset.title}"
                        description = f"Compensates changeset {changeset_id}"
                        actions = self.BuildCompensatingActions(changeset)
                except SQLAlchemyError as e:
                    session.rollback()
                    logger.error(f"Failed to revert changeset {changeset_id}: {str(e)}")
                    raise StorageFailureError(f"Failed to revert changeset: {e}")
                finally:
                    session.close()

                if actions is not None:
                    result = self._Propose(user_id, revert_title, description, actions, False, delete_policy,
                                           reverts_changeset_id=changeset_id)

            return OperationResult.Ok(result)

        except HubSpokeError as e:
            logger.warning(f"Revert of changeset {changeset_id} rejected: {e.kind.value}: {e.message}")
            return OperationResult.Fail(e)

    @staticmethod
    def BuildCompensatingActions(changeset: Changeset) -> List[SiteAction]:
        """
        Actions that undo a committed changeset, last change first

        Raises:
            HubSpokeValidationError: a recorded change has no data to undo from
        """
        actions: List[SiteAction] = []
        for change in reversed(changeset.site_changes):
            kind = ActionKind(change.action)
            old_data = change.old_data or {}

            if kind == ActionKind.CREATE:
                actions.append(DeleteSite(site_id=change.site_id))

            elif kind == ActionKind.UPDATE:
                actions.append(ActionFromPayload(ActionKind.UPDATE, change.site_id, old_data))

            elif kind == ActionKind.DELETE:
                actions.append(ActionFromPayload(ActionKind.CREATE, change.site_id, old_data))
                for descendant in old_data.get("cascade", []):
                    actions.append(ActionFromPayload(ActionKind.CREATE, descendant["site_id"], descendant))
                for child_id in old_data.get("orphaned", []):
                    actions.append(AssociateSite(site_id=child_id, parent_hub_id=change.site_id))

            elif old_data.get("parent_hub_id"):
                actions.append(AssociateSite(site_id=change.site_id, parent_hub_id=old_data["parent_hub_id"]))

            else:
                actions.append(DisassociateSite(site_id=change.site_id))

        return actions

    def ImportCsv(self, rows: List[CsvSiteRow], user_id: Optional[str], title: str,
                  description: Optional[str] = None) -> OperationResult:
        """
        Import CSV rows as one committed changeset

        Returns:
            OperationResult; ValidationError with every row problem listed
            if the rows are invalid (nothing is applied)
        """
        actions, errors = TransformRows(rows)
        if errors:
            logger.warning(f"CSV import '{title}' rejected with {len(errors)} validation error(s)")
            return OperationResult.Fail(HubSpokeValidationError(
                f"CSV contains {len(errors)} validation error(s)", errors
            ))

        description = description or f"Imported {len(actions)} sites from CSV file"
        result = self.ProposeChangeset(user_id, title, description, actions)
        if result.success:
            logger.info(f"CSV import '{title}' created {len(actions)} sites")
        return result

    # ==================== Single-site mutations ====================

    def CreateSite(self, user_id: Optional[str], payload: Dict[str, Any]) -> OperationResult:
        """
        Create one site as a committed single-action changeset

        Args:
            user_id: User creating the site
            payload: Site fields (name and url required, optional parent_hub_id)

        Returns:
            OperationResult with the changeset; value["site_id"] is the new site
        """
        site_id = str(uuid.uuid4())
        try:
            action = ActionFromPayload(ActionKind.CREATE, site_id, payload)
        except HubSpokeError as e:
            return OperationResult.Fail(e)

        result = self.ProposeChangeset(user_id, f"Site Created: {action.name}",
                                       f"Created site {action.url}", [action])
        if result.success:
            result.value["site_id"] = site_id
        return result

    def UpdateSite(self, user_id: Optional[str], site_id: str, changes: Dict[str, Any]) -> OperationResult:
        """Change descriptive fields of one site"""
        site = self.registry.Get(site_id)
        if site is None:
            return OperationResult.Fail(NotFoundError(f"Site '{site_id}' not found"))
        try:
            action = ActionFromPayload(ActionKind.UPDATE, site_id, changes)
        except HubSpokeError as e:
            return OperationResult.Fail(e)

        label = "Site" if site.HasParent() else "Hub"
        return self.ProposeChangeset(user_id, f"{label} Updated: {site.name}",
                                     f"Updated {', '.join(sorted(changes))}", [action])

    def DeleteSite(self, user_id: Optional[str], site_id: str) -> OperationResult:
        """Delete one site; its children follow the delete policy"""
        site = self.registry.Get(site_id)
        if site is None:
            return OperationResult.Fail(NotFoundError(f"Site '{site_id}' not found"))

        return self.ProposeChangeset(user_id, f"Site Deleted: {site.name}",
                                     f"Deleted site {site.url}", [DeleteSite(site_id=site_id)])

    def SetParent(self, user_id: Optional[str], site_id: str, parent_hub_id: Optional[str]) -> OperationResult:
        """
        Associate a site with a parent, or disassociate it when parent_hub_id is None
        """
        site = self.registry.Get(site_id)
        if site is None:
            return OperationResult.Fail(NotFoundError(f"Site '{site_id}' not found"))

        if parent_hub_id:
            action = AssociateSite(site_id=site_id, parent_hub_id=parent_hub_id)
            parent = self.registry.Get(parent_hub_id)
            description = f"Associated with {parent.name if parent else parent_hub_id}"
        else:
            action = DisassociateSite(site_id=site_id)
            description = "Removed hub association"

        return self.ProposeChangeset(user_id, f"Site Association: {site.name}", description, [action])

    # ==================== Queries ====================

    def GetChangeset(self, changeset_id: str) -> OperationResult:
        """Get a changeset with its site changes"""
        session = self.db_manager.GetSession()
        try:
            changeset = self.db_manager.GetChangeset(session, changeset_id)
            if changeset is None:
                return OperationResult.Fail(NotFoundError(f"Changeset '{changeset_id}' not found"))
            return OperationResult.Ok(ChangesetToDict(changeset))
        except SQLAlchemyError as e:
            logger.error(f"Failed to load changeset {changeset_id}: {str(e)}")
            return OperationResult.Fail(StorageFailureError(f"Failed to load changeset: {e}"))
        finally:
            session.close()

    def ListChangesets(self, status: Optional[str] = None, user_id: Optional[str] = None,
                       search: Optional[str] = None) -> OperationResult:
        """List changesets newest first"""
        session = self.db_manager.GetSession()
        try:
            changesets = self.db_manager.ListChangesets(session, status=status, user_id=user_id, search=search)
            return OperationResult.Ok([ChangesetToDict(changeset) for changeset in changesets])
        except SQLAlchemyError as e:
            logger.error(f"Failed to list changesets: {str(e)}")
            return OperationResult.Fail(StorageFailureError(f"Failed to list changesets: {e}"))
        finally:
            session.close()

    def GetAssociationActions(self, changeset_id: str) -> OperationResult:
        """
        Association changes of a committed changeset, for script generation

        Returns:
            OperationResult with a list of dicts (action, site and parent
            name/url resolved from the current registry where they still exist)
        """
        result = self.GetChangeset(changeset_id)
        if not result.success:
            return result

        changeset = result.value
        if changeset["status"] != STATUS_COMMITTED:
            return OperationResult.Fail(InvalidStateError(
                f"Changeset '{changeset['title']}' is {changeset['status']}, not COMMITTED"
            ))

        associations = []
        for change in changeset["site_changes"]:
            if change["action"] not in (ActionKind.ASSOCIATE.value, ActionKind.DISASSOCIATE.value):
                continue

            site = self.registry.Get(change["site_id"])
            if change["action"] == ActionKind.ASSOCIATE.value:
                parent_id = (change["new_data"] or {}).get("parent_hub_id")
            else:
                parent_id = (change["old_data"] or {}).get("parent_hub_id")
            parent = self.registry.Get(parent_id)

            associations.append({
                "sequence": change["sequence"],
                "action": change["action"],
                "site_id": change["site_id"],
                "site_name": site.name if site else None,
                "site_url": site.url if site else None,
                "parent_hub_id": parent_id,
                "parent_name": parent.name if parent else None,
                "parent_url": parent.url if parent else None,
            })

        return OperationResult.Ok(associations)
