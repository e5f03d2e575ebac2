"""CodeCloze - on-demand pull request review agent for GitHub."""

__version__ = "1.0.0"
__description__ = "On-demand pull request review agent for GitHub"

__all__ = ["__version__"]
