import pytest

from helpers import FakeAgentAPI


@pytest.fixture()
def agent_api():
    return FakeAgentAPI()
