import pytest
from pydantic import ValidationError

from opx_apply.models import OPX_OP_MAP, ActionType, ChangeBlock, FileAction
from opx_apply.models.action_models import ChangeBlock as CoreChangeBlock


def test_public_model_exports_remain_compatible():
    assert ChangeBlock is CoreChangeBlock
    assert OPX_OP_MAP["patch"] is ActionType.MODIFY
    action = FileAction(path="a.ts", action="rename", new_path="b.ts")
    assert action.action is ActionType.RENAME


def test_op_map_covers_every_action():
    assert set(OPX_OP_MAP.values()) == set(ActionType)


def test_file_action_is_frozen():
    action = FileAction(path="a.ts", action=ActionType.DELETE)
    with pytest.raises(ValidationError):
        action.path = "b.ts"
