import pytest

from roomkeeper.domains.permissions import Action, PermissionLevel, PermissionPolicy

VIEWER = PermissionLevel.VIEWER
ASSIST = PermissionLevel.ASSIST
EDITOR = PermissionLevel.EDITOR


def test_levels_are_totally_ordered():
    assert PermissionPolicy.compare(VIEWER, ASSIST) == -1
    assert PermissionPolicy.compare(ASSIST, EDITOR) == -1
    assert PermissionPolicy.compare(EDITOR, VIEWER) == 1
    assert PermissionPolicy.compare(ASSIST, ASSIST) == 0


@pytest.mark.parametrize("requested", list(PermissionLevel))
@pytest.mark.parametrize("ceiling", list(PermissionLevel))
def test_effective_level_never_exceeds_ceiling(requested, ceiling):
    effective = PermissionPolicy.effective_level(requested, ceiling)
    assert PermissionPolicy.compare(effective, ceiling) <= 0
    if PermissionPolicy.compare(requested, ceiling) <= 0:
        assert effective == requested
    else:
        assert effective == ceiling


def test_history_lock_excludes_editor():
    assert PermissionPolicy.allowed_levels_under_history_lock() == [VIEWER, ASSIST]
    assert EDITOR not in PermissionPolicy.available_levels(EDITOR, history_locked=True)


def test_available_levels_follow_ceiling():
    assert PermissionPolicy.available_levels(EDITOR) == [VIEWER, ASSIST, EDITOR]
    assert PermissionPolicy.available_levels(ASSIST) == [VIEWER, ASSIST]
    assert PermissionPolicy.available_levels(VIEWER, history_locked=True) == [VIEWER]


def test_constrain_applies_ceiling_then_lock():
    assert PermissionPolicy.constrain(EDITOR, EDITOR, history_locked=True) == ASSIST
    assert PermissionPolicy.constrain(EDITOR, VIEWER, history_locked=True) == VIEWER
    assert PermissionPolicy.constrain(ASSIST, EDITOR, history_locked=False) == ASSIST


def test_can_perform_matrix():
    for level in PermissionLevel:
        assert PermissionPolicy.can_perform(level, Action.VIEW, history_locked=True)

    assert not PermissionPolicy.can_perform(VIEWER, Action.EDIT_NEW, False)
    assert PermissionPolicy.can_perform(ASSIST, Action.EDIT_NEW, True)
    assert PermissionPolicy.can_perform(EDITOR, Action.EDIT_NEW, False)

    assert not PermissionPolicy.can_perform(ASSIST, Action.EDIT_HISTORY, False)
    assert PermissionPolicy.can_perform(EDITOR, Action.EDIT_HISTORY, False)
    assert not PermissionPolicy.can_perform(EDITOR, Action.EDIT_HISTORY, True)


def test_parse_accepts_wire_values_only():
    assert PermissionPolicy.parse("assist") == ASSIST
    assert PermissionPolicy.parse(EDITOR) == EDITOR
    with pytest.raises(ValueError):
        PermissionPolicy.parse("owner")
    with pytest.raises(ValueError):
        PermissionPolicy.parse("Editor")
