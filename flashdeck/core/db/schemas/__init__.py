# Import models so Base metadata is aware of them
from .auth import User  # noqa: F401
from .learning_sets import LearningSet, Flashcard  # noqa: F401
