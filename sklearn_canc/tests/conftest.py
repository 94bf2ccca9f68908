"""pytest fixtures for the test cases in this directory."""
from typing import Iterable

import matplotlib
import pytest

from sklearn_canc.common import Rule, Variant
from sklearn_canc.context import NominalContext

from sklearn_canc.tests.datasets import Dataset, weather, wind_decides, \
    play_tennis, separable, artificial_disjunction_nominal

matplotlib.use('Agg')


def all_subsets(positions: Iterable[int]):
    """:return: All subsets of `positions`, as sets."""
    positions = list(positions)
    for bits in range(2 ** len(positions)):
        yield {p for i, p in enumerate(positions) if bits >> i & 1}


# pytest plugin, to print rules on test failure
@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    default = yield
    report = default.get_result()
    if report.failed and report.user_properties:
        for name, prop in report.user_properties:
            if name == 'rules':
                report.longrepr.addsection(name, str(prop))
                break
    return default


@pytest.fixture
def record_rules(record_property):
    def _record(rules: Iterable[Rule]):
        record_property("rules", '\n'.join(map(str, rules)))
    return _record


@pytest.fixture(params=list(Variant), ids=[v.value for v in Variant])
def variant(request) -> Variant:
    """Fixture running for each of the concept generation variants."""
    return request.param


@pytest.fixture
def weather_dataset() -> Dataset:
    return weather()


@pytest.fixture
def weather_context(weather_dataset) -> NominalContext:
    """The three `weather` records, each with weight 1."""
    return weather_dataset.context()


@pytest.fixture
def wind_context() -> NominalContext:
    return wind_decides().context()


@pytest.fixture
def tennis_context() -> NominalContext:
    return play_tennis().context()


@pytest.fixture(params=[weather, wind_decides, play_tennis, separable,
                        artificial_disjunction_nominal])
def blackbox_dataset(request) -> Dataset:
    return request.param()
