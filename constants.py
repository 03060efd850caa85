import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

STATIC_DIR = os.getenv("STATIC_DIR", "public")

HISTORY_LIMIT = 50

# {topic} is replaced with the translated term of a key topic
CALLBACK_TEMPLATES = (
    "Wait, did someone say {topic}?",
    "Going back to that {topic} thing...",
    "I'm still thinking about {topic}!",
    "{topic}? {topic}!",
    "Remember when we were talking about {topic}?",
    "Hold on, {topic}? Really?",
    "Can we circle back to {topic}?",
)
