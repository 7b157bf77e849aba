# kickstart/api/dto/study_session.py
# DTOs d'entrée des transitions d'une session d'étude

from pydantic import BaseModel, Field


class SelectAnswerIn(BaseModel):
    answer_index: int = Field(..., description="Index de l'option choisie")


class CompleteIn(BaseModel):
    topics_completed: int = Field(..., ge=0, description="Sujets terminés pendant la session")
