import pytest

from funlab.nudge import ConfigurationError, EventSpec, make_handler


@pytest.fixture
def frames():
    return []


def test_spec_true_uses_source_event_name(frames):
    handler = make_handler('handlerName', True, frames.append)
    handler('test')
    assert frames == ['event: handlerName\ndata: "test"\n\n']


def test_name_overrides_event_name(frames):
    handler = make_handler('handlerName', {'name': 'customName'}, frames.append)
    handler('test')
    assert frames == ['event: customName\ndata: "test"\n\n']


def test_pre_processor_receives_all_arguments(frames):
    handler = make_handler('handlerName', {
        'pre_processor': lambda *args: ''.join(str(arg) for arg in args),
    }, frames.append)
    handler(1, 2, 3)
    assert frames == ['event: handlerName\ndata: "123"\n\n']


def test_pre_processor_with_name(frames):
    handler = make_handler('handlerName', EventSpec(
        name='customName',
        pre_processor=lambda *args: ''.join(str(arg) for arg in args),
    ), frames.append)
    handler(1, 2, 3)
    assert frames == ['event: customName\ndata: "123"\n\n']


def test_pre_processor_returning_none_filters(frames):
    handler = make_handler('handlerName', {
        'name': 'customName',
        'pre_processor': lambda flag: flag if flag is True else None,
    }, frames.append)

    handler(True)
    handler(False)
    handler(True)
    handler(False)

    assert frames == [
        'event: customName\ndata: true\n\n',
        'event: customName\ndata: true\n\n',
    ]


def test_without_pre_processor_only_first_argument_is_sent(frames):
    handler = make_handler('test', True, frames.append)
    handler('first', 'second')
    handler()
    assert frames == ['event: test\ndata: "first"\n\n', 'event: test\ndata: null\n\n']


def test_handler_returns_nothing(frames):
    handler = make_handler('test', True, frames.append)
    assert handler('x') is None


def test_serialization_error_reaches_caller(frames):
    handler = make_handler('test', True, frames.append)
    with pytest.raises(TypeError):
        handler(object())
    assert frames == []


def test_invalid_spec_is_rejected(frames):
    with pytest.raises(ConfigurationError):
        make_handler('test', 'hello', frames.append)
