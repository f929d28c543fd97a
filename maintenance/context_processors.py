from .transitions import TRANSITIONS


def scanner_transitions(request):
    """Make the scanner transition catalog available to all templates"""
    return {
        'scanner_transitions': TRANSITIONS,
    }
