"""
Tests for bulk actions — critical for data safety.
Deletion, relocation and export must touch exactly the duplicates, never the canonical files,
and one file's failure must never abort the rest of the batch.
"""
import os
import pytest
from dupfu import ScanCommand
from dupfu.core.errors import ActionError, FatalError
from dupfu.core.models import DuplicateEntry
from dupfu.services import action_service
from dupfu.services.action_service import ActionService, ActionExecutor
from conftest import write_file, make_params


@pytest.fixture
def three_copies(temp_dir):
    """Three identical files at three distinct modification times."""
    content = b"identical content"
    paths = {
        "oldest": write_file(temp_dir / "photos" / "img.jpg", content, mtime=1000),
        "middle": write_file(temp_dir / "backup" / "img.jpg", content, mtime=2000),
        "newest": write_file(temp_dir / "inbox" / "img_copy.jpg", content, mtime=3000),
    }
    result = ScanCommand().execute(make_params(temp_dir))
    return paths, result


class TestMove:
    def test_moves_duplicates_and_keeps_canonical(self, three_copies, tmp_path):
        paths, result = three_copies
        target = tmp_path / "dups"

        outcome = ActionExecutor.from_result(result).move(str(target))

        assert outcome.success_count == 2
        assert outcome.errors == []
        assert paths["oldest"].exists(), "Canonical file must stay at its original path"
        assert not paths["middle"].exists()
        assert not paths["newest"].exists()
        assert sorted(p.name for p in target.iterdir()) == ["img.jpg", "img_copy.jpg"]
        assert outcome.destination == str(target)

    def test_name_collisions_get_numeric_suffix(self, tmp_path):
        target = tmp_path / "dups"
        write_file(target / "photo.jpg", b"already here")
        canonical = write_file(tmp_path / "keep" / "photo.jpg", b"same")
        first = write_file(tmp_path / "a" / "photo.jpg", b"same")
        second = write_file(tmp_path / "b" / "photo.jpg", b"same")
        entries = [
            DuplicateEntry(path=str(first), size=4, canonical_path=str(canonical)),
            DuplicateEntry(path=str(second), size=4, canonical_path=str(canonical)),
        ]

        outcome = ActionService.move_duplicates(entries, str(target))

        assert outcome.success_count == 2
        assert (target / "photo.jpg").read_bytes() == b"already here", "Existing file must not be overwritten"
        assert (target / "photo_1.jpg").read_bytes() == b"same"
        assert (target / "photo_2.jpg").read_bytes() == b"same"

    def test_unique_destination_without_extension(self, tmp_path):
        write_file(tmp_path / "README", b"x")
        assert ActionService.unique_destination(str(tmp_path), "README") == str(tmp_path / "README_1")
        assert ActionService.unique_destination(str(tmp_path), "other") == str(tmp_path / "other")

    def test_creates_target_directory_recursively(self, three_copies, tmp_path):
        _, result = three_copies
        target = tmp_path / "deep" / "nested" / "dups"

        outcome = ActionExecutor.from_result(result).move(str(target))

        assert target.is_dir()
        assert outcome.success_count == 2

    def test_uncreatable_target_is_fatal(self, three_copies, tmp_path):
        paths, result = three_copies
        blocker = write_file(tmp_path / "not_a_dir", b"file")

        with pytest.raises(FatalError, match="Cannot create destination directory"):
            ActionExecutor.from_result(result).move(str(blocker / "dups"))

        assert paths["middle"].exists() and paths["newest"].exists()

    def test_missing_source_is_reported_and_batch_continues(self, three_copies, tmp_path):
        paths, result = three_copies
        executor = ActionExecutor.from_result(result)
        paths["middle"].unlink()

        outcome = executor.move(str(tmp_path / "dups"), verify=False)

        assert outcome.success_count == 1
        assert len(outcome.errors) == 1
        assert outcome.errors[0].path == str(paths["middle"])
        assert not paths["newest"].exists()


class TestDelete:
    def test_deletes_only_duplicates(self, three_copies):
        paths, result = three_copies

        outcome = ActionExecutor.from_result(result).delete()

        assert outcome.success_count == 2
        assert paths["oldest"].exists()
        assert not paths["middle"].exists()
        assert not paths["newest"].exists()

    def test_one_permission_failure_does_not_abort_batch(self, tmp_path, monkeypatch):
        canonical = write_file(tmp_path / "keep.txt", b"same", mtime=1)
        dups = [write_file(tmp_path / f"dup{i}.txt", b"same", mtime=2 + i) for i in range(3)]
        entries = [DuplicateEntry(path=str(p), size=4, canonical_path=str(canonical)) for p in dups]
        protected = str(dups[1])
        real_remove = os.remove

        def guarded_remove(path, *args, **kwargs):
            if os.fspath(path) == protected:
                raise PermissionError(13, "Permission denied", protected)
            return real_remove(path, *args, **kwargs)

        monkeypatch.setattr(os, "remove", guarded_remove)
        outcome = ActionService.delete_duplicates(entries)

        assert outcome.success_count == 2
        assert len(outcome.errors) == 1
        assert isinstance(outcome.errors[0], ActionError)
        assert outcome.errors[0].path == protected
        assert "Permission denied" in str(outcome.errors[0])
        assert dups[1].exists()
        assert not dups[0].exists() and not dups[2].exists()
        assert canonical.exists()

    def test_already_deleted_file_is_reported(self, three_copies):
        paths, result = three_copies
        executor = ActionExecutor.from_result(result)
        paths["newest"].unlink()

        outcome = executor.delete(verify=False)

        assert outcome.success_count == 1
        assert [e.path for e in outcome.errors] == [str(paths["newest"])]

    def test_use_trash_routes_through_send2trash(self, three_copies, monkeypatch):
        paths, result = three_copies
        trashed = []
        monkeypatch.setattr(action_service, "send2trash", trashed.append)

        outcome = ActionExecutor.from_result(result).delete(use_trash=True)

        assert outcome.success_count == 2
        assert sorted(trashed) == sorted([str(paths["middle"]), str(paths["newest"])])

    def test_trash_failure_is_reported(self, three_copies, monkeypatch):
        _, result = three_copies

        def failing_trash(path):
            raise RuntimeError("no trash can")

        monkeypatch.setattr(action_service, "send2trash", failing_trash)
        outcome = ActionExecutor.from_result(result).delete(use_trash=True)

        assert outcome.success_count == 0
        assert len(outcome.errors) == 2


class TestVerification:
    """Fingerprints can collide; destructive actions re-check content first."""

    def collision(self, tmp_path):
        canonical = write_file(tmp_path / "keep.bin", b"AAAA")
        impostor = write_file(tmp_path / "impostor.bin", b"BBBB")
        return canonical, impostor, [DuplicateEntry(path=str(impostor), size=4, canonical_path=str(canonical))]

    def test_delete_skips_content_mismatch(self, tmp_path):
        _, impostor, entries = self.collision(tmp_path)

        outcome = ActionService.delete_duplicates(entries)

        assert outcome.success_count == 0
        assert "Content differs" in str(outcome.errors[0])
        assert impostor.exists()

    def test_move_skips_content_mismatch(self, tmp_path):
        _, impostor, entries = self.collision(tmp_path)

        outcome = ActionService.move_duplicates(entries, str(tmp_path / "dups"))

        assert outcome.success_count == 0
        assert impostor.exists()

    def test_verify_disabled(self, tmp_path):
        _, impostor, entries = self.collision(tmp_path)

        outcome = ActionService.delete_duplicates(entries, verify=False)

        assert outcome.success_count == 1
        assert not impostor.exists()

    def test_missing_canonical_is_an_error(self, tmp_path):
        impostor = write_file(tmp_path / "dup.bin", b"AAAA")
        entries = [DuplicateEntry(path=str(impostor), size=4, canonical_path=str(tmp_path / "gone.bin"))]

        outcome = ActionService.delete_duplicates(entries)

        assert outcome.success_count == 0
        assert "Cannot verify" in str(outcome.errors[0])
        assert impostor.exists()


class TestConfirmation:
    def test_declined_confirmation_touches_nothing(self, three_copies):
        paths, result = three_copies
        asked = []

        def decline(to_delete):
            asked.append(list(to_delete))
            return False

        outcome = ActionExecutor.from_result(result).delete(confirm=decline)

        assert outcome.cancelled is True
        assert outcome.success_count == 0
        assert sorted(asked[0]) == sorted([str(paths["middle"]), str(paths["newest"])])
        assert all(p.exists() for p in paths.values())

    def test_accepted_confirmation_proceeds(self, three_copies, tmp_path):
        _, result = three_copies
        outcome = ActionExecutor.from_result(result).move(str(tmp_path / "dups"), confirm=lambda paths: True)
        assert outcome.success_count == 2
        assert outcome.cancelled is False


class TestExport:
    def test_manifest_lists_exactly_the_duplicates(self, three_copies, tmp_path):
        paths, result = three_copies
        target = tmp_path / "report"

        outcome = ActionExecutor.from_result(result).export(str(target))

        manifest = target / "duplicates.txt"
        assert outcome.destination == str(manifest)
        assert outcome.success_count == 2
        lines = manifest.read_text(encoding="utf-8").splitlines()
        assert set(lines) == {str(paths["middle"]), str(paths["newest"])}
        assert all(os.path.isabs(line) for line in lines)
        assert all(p.exists() for p in paths.values()), "Export must not modify any file"

    def test_custom_manifest_name_and_unicode_paths(self, tmp_path):
        canonical = write_file(tmp_path / "оригинал.txt", b"x")
        dup = write_file(tmp_path / "копия.txt", b"x")
        entries = [DuplicateEntry(path=str(dup), size=1, canonical_path=str(canonical))]

        outcome = ActionService.export_duplicates(entries, str(tmp_path / "out"), manifest_name="list.txt")

        assert outcome.success_count == 1
        assert (tmp_path / "out" / "list.txt").read_text(encoding="utf-8") == f"{dup}\n"

    def test_empty_snapshot_writes_empty_manifest(self, tmp_path):
        outcome = ActionService.export_duplicates([], str(tmp_path))
        assert outcome.success_count == 0
        assert (tmp_path / "duplicates.txt").read_text(encoding="utf-8") == ""

    def test_manifest_name_must_be_plain(self, tmp_path):
        with pytest.raises(ValueError):
            ActionService.export_duplicates([], str(tmp_path), manifest_name="../escape.txt")

    def test_uncreatable_target_is_fatal(self, tmp_path):
        blocker = write_file(tmp_path / "file", b"x")
        with pytest.raises(FatalError):
            ActionService.export_duplicates([], str(blocker / "sub"))


class TestActionExecutorSnapshot:
    def test_snapshot_taken_once(self, three_copies):
        paths, result = three_copies
        executor = ActionExecutor.from_result(result)

        assert sorted(executor.paths) == sorted([str(paths["middle"]), str(paths["newest"])])
        assert executor.total_bytes == 2 * len(b"identical content")
        assert all(e.canonical_path == str(paths["oldest"]) for e in executor.entries)
