"""Tests for the revision ledger."""
import pytest

from content import EditorIdentity
from document_store import WIKI_REVISIONS
from errors import NotFoundError


async def _page_with_edits(services, editor, edits):
    page_id = await services.wiki.create(
        {"title": "Ocean Beach", "category": "locations", "content": "Line one\n"}, editor
    )
    for i in range(edits):
        await services.wiki.update(page_id, {"content": f"Line one\nEdit {i}\n"}, editor)
    return page_id


@pytest.mark.asyncio
async def test_one_revision_per_mutation_newest_first(services, editor):
    """Create plus N updates yields N+1 revisions, strictly newest first."""
    page_id = await _page_with_edits(services, editor, 3)
    revisions = await services.wiki.revisions(page_id)
    assert len(revisions) == 4
    timestamps = [r.timestamp for r in revisions]
    assert all(a > b for a, b in zip(timestamps, timestamps[1:]))
    assert revisions[-1].change_description == "Initial creation"
    assert revisions[0].change_description == "Updated page"
    assert revisions[0].content == "Line one\nEdit 2\n"


@pytest.mark.asyncio
async def test_revision_records_editor(services):
    ricardo = EditorIdentity(uid="diaz", display_name="Ricardo Diaz")
    page_id = await services.wiki.create({"title": "Starfish Island"}, ricardo)
    [revision] = await services.wiki.revisions(page_id)
    assert revision.user.uid == "diaz"
    assert revision.page_id == page_id
    assert revision.title == "Starfish Island"


@pytest.mark.asyncio
async def test_custom_change_note(services, editor):
    page_id = await _page_with_edits(services, editor, 0)
    await services.wiki.update(page_id, {"title": "Ocean Beach (Vice City)"}, editor, change_note="Renamed")
    revisions = await services.wiki.revisions(page_id)
    assert revisions[0].change_description == "Renamed"


@pytest.mark.asyncio
async def test_revisions_recorded_during_fallback(services, editor, primary, cache):
    page_id = await _page_with_edits(services, editor, 1)
    primary.failing = True
    await services.wiki.update(page_id, {"content": "Offline edit\n"}, editor)
    revisions = await services.wiki.revisions(page_id)
    assert len(revisions) == 3
    assert revisions[0].content == "Offline edit\n"
    assert revisions[0].id.startswith("local-")
    assert await cache.get(WIKI_REVISIONS, revisions[0].id) is not None


@pytest.mark.asyncio
async def test_compare_revisions(services, editor):
    page_id = await _page_with_edits(services, editor, 1)
    new, old = await services.wiki.revisions(page_id)
    diff = await services.wiki_ledger.compare(old.id, new.id)
    assert diff.lines_added == 1
    assert diff.lines_removed == 0
    assert diff.changed_fields == ["content"]
    assert "+Edit 0" in diff.diff
    assert diff.to_dict()["statistics"]["total_changes"] == 1


@pytest.mark.asyncio
async def test_compare_missing_revision(services, editor):
    page_id = await _page_with_edits(services, editor, 0)
    [revision] = await services.wiki.revisions(page_id)
    with pytest.raises(NotFoundError):
        await services.wiki_ledger.compare(revision.id, "missing")


@pytest.mark.asyncio
async def test_restore_revision(services, editor):
    page_id = await _page_with_edits(services, editor, 2)
    original = (await services.wiki.revisions(page_id))[-1]
    page = await services.wiki.restore_revision(page_id, original.id, editor)
    assert page.content == "Line one\n"
    revisions = await services.wiki.revisions(page_id)
    assert len(revisions) == 4
    assert revisions[0].change_description == f"Restored revision {original.id}"


@pytest.mark.asyncio
async def test_restore_revision_of_other_page(services, editor):
    first = await _page_with_edits(services, editor, 0)
    second = await services.wiki.create({"title": "Washington Beach"}, editor)
    [revision] = await services.wiki.revisions(first)
    with pytest.raises(NotFoundError):
        await services.wiki.restore_revision(second, revision.id, editor)


@pytest.mark.asyncio
async def test_malformed_revision_is_skipped(services, editor, cache):
    page_id = await _page_with_edits(services, editor, 0)
    await cache.put(WIKI_REVISIONS, "broken", {"pageId": page_id})
    assert len(await services.wiki.revisions(page_id)) == 1
