import pytest

from funlab.nudge import Config, ConfigurationError, EventSpec, check_validity


@pytest.mark.parametrize('event_specs', ['hello', [], None, 42])
def test_rejects_non_mapping(event_specs):
    with pytest.raises(ConfigurationError):
        check_validity(event_specs)


@pytest.mark.parametrize('spec', ['hello', [], {}, False, 1, None])
def test_rejects_spec_that_is_not_true_or_mapping(spec):
    with pytest.raises(ConfigurationError):
        check_validity({'test': spec})


def test_accepts_empty_mapping():
    assert check_validity({}) == {}


def test_accepts_named_spec():
    specs = check_validity({'test': {'name': 'test'}})
    assert specs['test'].name == 'test'
    assert specs['test'].pre_processor is None


def test_true_uses_defaults():
    specs = check_validity({'test': True})
    assert specs['test'] == EventSpec()


def test_rejects_bad_fields():
    with pytest.raises(ConfigurationError):
        check_validity({'test': {'pre_processor': 'not callable'}})
    with pytest.raises(ConfigurationError):
        check_validity({'test': {'name': 'x', 'colour': 'red'}})


def test_rejects_non_string_event_name():
    with pytest.raises(ConfigurationError):
        check_validity({1: True})


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        check_validity('hello')


def test_spec_instance_passes_through():
    spec = EventSpec(name='custom')
    assert check_validity({'test': spec})['test'] is spec


def test_config_defaults():
    defaults = Config.defaults()
    assert defaults['NUDGE_URL_PREFIX'] == '/nudge'
    assert defaults['NUDGE_HEARTBEAT_INTERVAL'] is None
    assert defaults['NUDGE_EVENTS'] == {}
    assert 'defaults' not in defaults


def test_defaults_are_copies():
    defaults = Config.defaults()
    defaults['NUDGE_EVENTS']['test'] = True
    assert Config.NUDGE_EVENTS == {}
    assert Config.defaults()['NUDGE_EVENTS'] is not Config.NUDGE_EVENTS
