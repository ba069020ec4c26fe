"""
Shared fixtures for the CC Router tests.
"""

import sys
from pathlib import Path

import pytest

# Add the src directory to path so the tests run without an install
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from cc_router.live_session import StaticLiveSession


SESSION_DATA = {
    'selected_track': 0,
    'tracks': [
        {
            'name': 'Bass',
            'devices': [
                {'name': 'CC Router', 'parameters': ['Device On']},
                {'name': 'Diva', 'parameters': [
                    'Cutoff', 'Resonance', 'Env Amount', 'Attack', 'Decay',
                    'Sustain', 'Release', 'Drive', 'Glide', 'Volume',
                    'Pan', 'Fine Tune',
                ]},
            ],
        },
        {
            'name': 'Drums',
            'devices': [],
        },
    ],
}


@pytest.fixture
def session_data():
    """Two tracks; 'Bass' holds the router and a 12-parameter synth."""
    import copy
    return copy.deepcopy(SESSION_DATA)


@pytest.fixture
def session(session_data):
    return StaticLiveSession.from_dict(session_data)


@pytest.fixture
def statuses():
    """Collects status tokens in order."""
    return []
