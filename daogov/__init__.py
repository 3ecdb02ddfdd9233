"""
daogov: DAO governance decision engine

Decides, at any block, whether a proposal's outcome is already certain.
Import from submodules:

    from daogov.governance import SingleChoiceProposalModule, ProposalConfig
    from daogov.config import load_config
    from daogov.logger import get_logger
"""

# Lazy imports so that importing the package does not configure logging
def __getattr__(name):
    """Lazy module loading."""
    if name == 'SingleChoiceProposalModule':
        from .governance import SingleChoiceProposalModule
        return SingleChoiceProposalModule
    elif name == 'MultipleChoiceProposalModule':
        from .governance import MultipleChoiceProposalModule
        return MultipleChoiceProposalModule
    elif name == 'ProposalConfig':
        from .governance import ProposalConfig
        return ProposalConfig
    elif name == 'load_config':
        from .config import load_config
        return load_config
    raise AttributeError(f"module 'daogov' has no attribute {name!r}")

__all__ = ['SingleChoiceProposalModule', 'MultipleChoiceProposalModule', 'ProposalConfig', 'load_config']
