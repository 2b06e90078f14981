##########################################################################################
#
# Script name: test_config.py
#
# Description: Settings defaults, YAML/environment overrides and validation tests.
#
##########################################################################################

from pathlib import Path
from textwrap import dedent

import pytest

from claude_news.config import Settings, load_settings, validate_settings


def test_defaults_without_overrides() -> None:
    settings = load_settings(environ={})
    assert settings == Settings()
    assert settings.cache_ttl_ms == 2 * 60 * 60 * 1000
    assert settings.similarity_threshold == 0.8


def test_yaml_then_environment_overrides(tmp_path: Path) -> None:
    path = tmp_path / 'settings.yaml'
    path.write_text(
        dedent(
            '''
            http:
              retries: 5
              timeout_ms: 3000
            news:
              default_limit: 7
              similarity_threshold: 0.6
            cache:
              file: /tmp/news-cache.json
            '''
        ),
        encoding='utf-8',
    )

    settings = load_settings(str(path), environ={'HTTP_RETRIES': '1', 'NEWS_CACHE_TTL': '120000'})

    assert settings.http_retries == 1
    assert settings.http_timeout_ms == 3000
    assert settings.default_limit == 7
    assert settings.similarity_threshold == 0.6
    assert settings.cache_file == '/tmp/news-cache.json'
    assert settings.cache_ttl_ms == 120_000


def test_invalid_environment_values_are_ignored() -> None:
    settings = load_settings(environ={'HTTP_RETRIES': 'lots', 'NEWS_DEFAULT_LIMIT': ''})
    assert settings.http_retries == 3
    assert settings.default_limit == 20


@pytest.mark.parametrize(
    'overrides',
    [
        {'http_retries': -1},
        {'http_timeout_ms': 500},
        {'cache_ttl_ms': 1000},
        {'similarity_threshold': 1.5},
        {'recency_window_ms': 0},
    ],
)
def test_validation_rejects_out_of_range_values(overrides: dict) -> None:
    with pytest.raises(ValueError):
        validate_settings(Settings(**overrides))


def test_environment_values_are_validated() -> None:
    with pytest.raises(ValueError):
        load_settings(environ={'HTTP_TIMEOUT': '10'})


def test_non_mapping_yaml_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / 'settings.yaml'
    path.write_text('- 1\n- 2\n', encoding='utf-8')
    with pytest.raises(ValueError):
        load_settings(str(path), environ={})
