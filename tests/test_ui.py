"""
Streamlit UI smoke tests, run headless through streamlit's AppTest harness.
"""
import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

os.environ.pop('REMIT_LIVE_RATES', None)
os.environ.pop('REMIT_BASE_RATE', None)
os.environ.pop('REMIT_DATA_DIR', None)

from streamlit.testing.v1 import AppTest

from remit_tool.config.settings import get_ui_script


@pytest.fixture
def app():
    at = AppTest.from_file(str(get_ui_script()), default_timeout=30)
    at.run()
    return at


def test_sidebar_has_live_rate_toggle(app):
    assert not app.exception
    toggle = app.sidebar.toggle[0]
    assert toggle.label == "Live rates"
    assert toggle.value is False
    assert any("fixed 1,380" in c.value for c in app.sidebar.caption)


def test_live_rate_toggle_switches_rate_source(app):
    app.sidebar.toggle[0].set_value(True).run()
    assert not app.exception
    assert any("jittered 1,380" in c.value for c in app.sidebar.caption)


def test_swap_tab_quotes_amount_below_bank_fee(app):
    app.sidebar.number_input[0].set_value(20.0).run()
    assert not app.exception
    assert not [e for e in app.error if "exceed" in e.value]
    assert any(m.label == "You Receive" and "₩26,799" in m.value for m in app.metric)
    assert any("no savings comparison" in c.value for c in app.caption)
