"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/action_service.py
One-shot bulk actions over a snapshot of duplicate entries: delete, move, export.

Every action works on the list it is given and never re-reads the registry.
A single file's failure is recorded as an ActionError and the batch continues;
only a missing destination directory (or manifest) aborts the whole action.
"""
import logging
import os
import shutil
from typing import Callable, List, Optional, Sequence

from send2trash import send2trash

from dupfu.core.errors import ActionError, FatalError
from dupfu.core.models import ActionResult, DuplicateEntry, PipelineConfig
from dupfu.services.verify_service import VerifyService

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[List[str]], bool]


class ActionService:
    """
    Stateless bulk operations. `confirm`, when given, receives the list of paths
    about to be touched and must return True for the action to proceed.
    """

    @staticmethod
    def delete_duplicates(
            entries: Sequence[DuplicateEntry],
            use_trash: bool = False,
            verify: bool = True,
            confirm: Optional[ConfirmCallback] = None,
    ) -> ActionResult:
        """Remove every duplicate from storage (or move it to the system trash)."""
        paths = [e.path for e in entries]
        if not ActionService._confirmed(confirm, paths):
            return ActionResult(cancelled=True)

        result = ActionResult()
        for entry in entries:
            try:
                if verify:
                    VerifyService.verify(entry)
                ActionService._delete_file(entry.path, use_trash)
                result.success_count += 1
            except ActionError as e:
                logger.warning(str(e))
                result.errors.append(e)

        logger.debug(f"Deleted {result.success_count} duplicate file(s), {result.failed_count} failed")
        return result

    @staticmethod
    def move_duplicates(
            entries: Sequence[DuplicateEntry],
            target_dir: str,
            verify: bool = True,
            confirm: Optional[ConfirmCallback] = None,
    ) -> ActionResult:
        """
        Relocate every duplicate into target_dir under its base name.
        Name clashes get a numeric suffix instead of overwriting.

        Raises:
            FatalError: If target_dir cannot be created
        """
        paths = [e.path for e in entries]
        if not ActionService._confirmed(confirm, paths):
            return ActionResult(cancelled=True)

        target = ActionService.ensure_target_dir(target_dir)
        result = ActionResult(destination=target)
        for entry in entries:
            try:
                if verify:
                    VerifyService.verify(entry)
                destination = ActionService.unique_destination(target, os.path.basename(entry.path))
                ActionService._move_file(entry.path, destination)
                result.success_count += 1
            except ActionError as e:
                logger.warning(str(e))
                result.errors.append(e)

        logger.debug(f"Moved {result.success_count} duplicate file(s) to: {target}")
        return result

    @staticmethod
    def export_duplicates(
            entries: Sequence[DuplicateEntry],
            target_dir: str,
            manifest_name: str = PipelineConfig.MANIFEST_NAME,
    ) -> ActionResult:
        """
        Write one absolute duplicate path per line (UTF-8) to target_dir/manifest_name.

        Raises:
            FatalError: If target_dir cannot be created or the manifest cannot be written
        """
        if not manifest_name or os.path.basename(manifest_name) != manifest_name:
            raise ValueError(f"Manifest name must be a plain file name: '{manifest_name}'")

        target = ActionService.ensure_target_dir(target_dir)
        manifest = os.path.join(target, manifest_name)
        result = ActionResult(destination=manifest)
        try:
            with open(manifest, "w", encoding="utf-8", errors="surrogateescape", newline="\n") as f:
                for entry in entries:
                    f.write(os.path.abspath(entry.path))
                    f.write("\n")
                    result.success_count += 1
        except OSError as e:
            error_msg = f"Cannot write manifest: {e.strerror or e}"
            logger.error(error_msg)
            raise FatalError(error_msg, manifest) from e

        logger.debug(f"Exported {result.success_count} duplicate file(s) to: {manifest}")
        return result

    @staticmethod
    def ensure_target_dir(target_dir: str) -> str:
        """Create target_dir recursively if needed; failure is fatal for the calling action."""
        target = os.path.abspath(target_dir)
        try:
            os.makedirs(target, exist_ok=True)
        except OSError as e:
            error_msg = f"Cannot create destination directory: {e.strerror or e}"
            logger.error(error_msg)
            raise FatalError(error_msg, target) from e
        return target

    @staticmethod
    def unique_destination(target_dir: str, name: str) -> str:
        """
        First free path among name, stem_1.ext, stem_2.ext, ... inside target_dir.
        """
        candidate = os.path.join(target_dir, name)
        if not os.path.lexists(candidate):
            return candidate

        stem, ext = os.path.splitext(name)
        counter = 1
        while True:
            candidate = os.path.join(target_dir, f"{stem}_{counter}{ext}")
            if not os.path.lexists(candidate):
                return candidate
            counter += 1

    @staticmethod
    def _delete_file(path: str, use_trash: bool) -> None:
        try:
            if use_trash:
                send2trash(path)
            else:
                os.remove(path)
        except OSError as e:
            raise ActionError(f"Failed to delete: {e.strerror or e}", path) from e
        except Exception as e:
            # send2trash reports platform failures with its own exception types
            raise ActionError(f"Failed to move to trash: {e}", path) from e

    @staticmethod
    def _move_file(source: str, destination: str) -> None:
        if not os.path.lexists(source):
            raise ActionError("File not found", source)
        try:
            shutil.move(source, destination)
        except (OSError, shutil.Error) as e:
            raise ActionError(f"Failed to move to {destination}: {e}", source) from e

    @staticmethod
    def _confirmed(confirm: Optional[ConfirmCallback], paths: List[str]) -> bool:
        if confirm is None:
            return True
        if confirm(paths):
            return True
        logger.debug("Action declined by confirmation callback")
        return False


class ActionExecutor:
    """
    Binds the three bulk actions to one snapshot of duplicate entries,
    taken once when the executor is built.

    Usage:
        executor = ActionExecutor.from_result(result)
        outcome = executor.move("/backup/dups")
    """

    def __init__(self, entries: Sequence[DuplicateEntry]):
        self.entries: List[DuplicateEntry] = list(entries)

    @classmethod
    def from_result(cls, result) -> "ActionExecutor":
        return cls(result.duplicate_entries())

    @property
    def paths(self) -> List[str]:
        return [e.path for e in self.entries]

    @property
    def total_bytes(self) -> int:
        return sum(e.size for e in self.entries)

    def delete(self, use_trash: bool = False, verify: bool = True,
               confirm: Optional[ConfirmCallback] = None) -> ActionResult:
        return ActionService.delete_duplicates(self.entries, use_trash=use_trash, verify=verify, confirm=confirm)

    def move(self, target_dir: str, verify: bool = True,
             confirm: Optional[ConfirmCallback] = None) -> ActionResult:
        return ActionService.move_duplicates(self.entries, target_dir, verify=verify, confirm=confirm)

    def export(self, target_dir: str, manifest_name: str = PipelineConfig.MANIFEST_NAME) -> ActionResult:
        return ActionService.export_duplicates(self.entries, target_dir, manifest_name=manifest_name)
