"""Constantes partagées pour l'application."""

# Buckets du stockage objet
AUDIO_BUCKET = "audio-recordings"
CONTENT_BUCKET = "content-files"

# Collections Mongo
TASKS_COLLECTION = "tasks"
SESSION_LOGS_COLLECTION = "session_logs"

# Messages affichés pendant l'échauffement
MOTIVATIONAL_MESSAGES = (
    "You're building momentum! Every question brings you closer to mastery.",
    "Great progress! Your consistency is paying off.",
    "Keep going! You're developing the habit of success.",
    "Excellent work! Each step forward matters.",
)

# Faits présentés pendant la phase « curiosité »
CURIOSITY_FACTS = (
    "Did you know? The first operating system was created in the 1950s and could only run one program at a time!",
    "Fun fact: Modern smartphones have more computing power than the computers that sent humans to the moon!",
    "Interesting: The Linux kernel has over 28 million lines of code and is one of the largest collaborative projects in history!",
    "Amazing: Your computer's operating system makes millions of decisions every second to keep everything running smoothly!",
)
