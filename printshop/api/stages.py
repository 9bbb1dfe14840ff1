# printshop/api/stages.py

from fastapi import APIRouter

from printshop.models.stage import STAGES, is_work_stage, stage_label
from printshop.schemas.item_actions import StageRead


router = APIRouter()


@router.get("/stages", response_model=list[StageRead])
def list_stages():
    """Stage catalog, in workflow order."""
    return [
        StageRead(stage=s, label=stage_label(s), is_work_stage=is_work_stage(s))
        for s in STAGES
    ]
