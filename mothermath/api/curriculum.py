from fastapi import APIRouter, Depends

from mothermath.core.curriculum_loader import load_curriculum
from mothermath.core.security import get_current_user

router = APIRouter()


@router.get("/curriculum", summary="Levels, default scaffolds and interview options")
def get_curriculum(user_id: str = Depends(get_current_user)):
    data = load_curriculum()
    return {
        "region": data["region"],
        "curriculum": data["curriculum"],
        "levels": data["levels"],
        "lessonSections": data["lesson_sections"],
        "storySections": data["story_sections"],
        "interview": {
            "defaultRole": data["interview"]["default_role"],
            "focuses": data["interview"]["focuses"],
            "timeFrames": data["interview"]["time_frames"],
        },
    }
