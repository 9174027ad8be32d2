"""Top-level package for Castory.

Castory authors news podcasts: it searches trending articles for a topic,
writes a script, synthesizes long-form narration and a thumbnail, and
publishes the result, keeping an in-progress draft safe across restarts.
The main coordination entry point is `PodcastWizard`.
"""

from .wizard.coordinator import PodcastWizard

__all__ = ["PodcastWizard", "__version__"]

__version__ = "0.1.0"
