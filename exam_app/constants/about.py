"""Static metadata describing the exam engine."""

APP_NAME = "RaySphere Exam"
APP_VERSION = "0.1"
APP_ABOUT_TEXT = (
    "RaySphere Exam generates ray-sphere intersection questions for a computer graphics course "
    "at three difficulty levels and grades structured learner answers with partial credit."
)
