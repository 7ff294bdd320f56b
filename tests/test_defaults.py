from bc_money.defaults import get_config_value, load_config


def test_engine_defaults():
    engine = load_config('engine')
    assert engine['breakdown']['fallback_label'] == 'Otros'
    assert engine['budgets']['uncategorized_label'] == 'General'


def test_loaded_config_is_a_copy():
    load_config('engine')['breakdown']['fallback_label'] = 'changed'
    assert get_config_value('engine', 'breakdown', 'fallback_label') == 'Otros'


def test_missing_keys_return_default():
    assert get_config_value('engine', 'breakdown', 'nope', default=3) == 3
    assert get_config_value('missing-file', 'x', default='fallback') == 'fallback'
    assert get_config_value('engine', 'trend', 'weeks', 'deeper', default=None) is None
