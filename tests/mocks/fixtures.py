"""Test data factories for consistent test setup"""

from typing import List

from core.models import (
    Character,
    InputType,
    ProjectState,
    ScriptSegment,
    SegmentKind,
    Stage,
)


def make_segment(
    segment_id: str = "seg_1",
    kind: SegmentKind = SegmentKind.SCENE,
    content: str = "A quiet harbour at dawn",
    **kwargs
) -> ScriptSegment:
    """Factory for ScriptSegment objects"""
    defaults = {
        "id": segment_id,
        "kind": kind,
        "content": content,
        "visual_prompt": "Misty harbour at dawn, fishing boats, soft light",
    }
    defaults.update(kwargs)
    return ScriptSegment(**defaults)


def make_character(
    character_id: str = "char_1",
    name: str = "Mei",
    **kwargs
) -> Character:
    """Factory for Character objects"""
    defaults = {
        "id": character_id,
        "name": name,
        "description": "A fisherman's daughter",
        "visual_prompt": "Teenage girl, braided hair, yellow oilskin jacket",
    }
    defaults.update(kwargs)
    return Character(**defaults)


def make_script(count: int = 3) -> List[ScriptSegment]:
    """Factory for a script cycling dialogue, scene and action segments"""
    kinds = [SegmentKind.DIALOGUE, SegmentKind.SCENE, SegmentKind.ACTION]
    return [
        make_segment(
            segment_id=f"seg_{i+1}",
            kind=kinds[i % len(kinds)],
            content=f"Segment {i+1}",
            visual_prompt=f"Shot {i+1}",
        )
        for i in range(count)
    ]


def make_state(
    stage: Stage = Stage.CHARACTER_DESIGN,
    **kwargs
) -> ProjectState:
    """Factory for ProjectState snapshots past analysis"""
    defaults = {
        "raw_input": "Mei waits for the boats to come home.",
        "input_type": InputType.IDEA,
        "script": tuple(make_script()),
        "characters": (make_character(),),
        "current_stage": stage,
    }
    defaults.update(kwargs)
    return ProjectState(**defaults)
