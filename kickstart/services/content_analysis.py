# kickstart/services/content_analysis.py
# Collaborateur d'analyse de contenu : questions d'échauffement et nombre de sujets d'une tâche.

from __future__ import annotations

from typing import List, Protocol

from pydantic import BaseModel

from kickstart.models.session import Challenge
from kickstart.models.task import Task


class AnalysisResult(BaseModel):
    challenges: List[Challenge]
    topic_count: int


class ContentAnalyzer(Protocol):
    async def analyze(self, task: Task) -> AnalysisResult: ...


OS_BASICS_CHALLENGES = [
    Challenge(
        question="What is the primary purpose of an operating system?",
        options=[
            "To provide a user interface",
            "To manage hardware and software resources",
            "To run applications",
            "To store data",
        ],
        correct_index=1,
        explanation=(
            "The primary purpose of an OS is to manage hardware and software resources, "
            "acting as an intermediary between applications and hardware."
        ),
    ),
    Challenge(
        question="Which scheduling algorithm gives priority to shorter processes?",
        options=[
            "First Come First Serve (FCFS)",
            "Round Robin",
            "Shortest Job First (SJF)",
            "Priority Scheduling",
        ],
        correct_index=2,
        explanation=(
            "Shortest Job First (SJF) scheduling algorithm prioritizes processes with shorter "
            "execution times to minimize average waiting time."
        ),
    ),
    Challenge(
        question="What is a deadlock in operating systems?",
        options=[
            "When a process runs too slowly",
            "When processes wait indefinitely for resources",
            "When memory is full",
            "When CPU usage is 100%",
        ],
        correct_index=1,
        explanation=(
            "A deadlock occurs when two or more processes are blocked forever, "
            "waiting for each other to release resources."
        ),
    ),
]


class PlaceholderContentAnalyzer:
    """Analyseur de substitution : quiz fixe « systèmes d'exploitation ».

    Description:
        Tient la place d'une génération de questions à partir du contenu ; le nombre de
        sujets reprend celui fixé à la création de la tâche.
    """

    async def analyze(self, task: Task) -> AnalysisResult:
        return AnalysisResult(
            challenges=[c.model_copy(deep=True) for c in OS_BASICS_CHALLENGES],
            topic_count=task.total_topics,
        )
