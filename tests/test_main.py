"""
Tests for the command line entry point.
"""

import pytest
from click.testing import CliRunner

from callcapture.main import load_call_session_factory, main
from callcapture.utils.exceptions import ConfigurationError
from conftest import FakeCallSession


class TestLoadCallSessionFactory:
    """Test resolving the configured call session factory."""
    
    def test_resolves_callable(self):
        """Test a module:attribute path resolves to the callable."""
        assert load_call_session_factory('conftest:FakeCallSession') is FakeCallSession
    
    @pytest.mark.parametrize('path', [None, '', 'conftest', 'conftest:', ':FakeCallSession'])
    def test_malformed_path(self, path):
        """Test paths without both module and attribute are rejected."""
        with pytest.raises(ConfigurationError):
            load_call_session_factory(path)
    
    def test_missing_module(self):
        """Test an unknown module is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_call_session_factory('no_such_callcapture_module:create')
        
        assert "Cannot import" in str(exc_info.value)
    
    def test_not_callable(self):
        """Test an attribute that is not callable is rejected."""
        with pytest.raises(ConfigurationError):
            load_call_session_factory('conftest:__doc__')


class TestMain:
    """Test the click command."""
    
    def test_missing_config(self, tmp_path):
        """Test a missing config file exits with an error."""
        result = CliRunner().invoke(main, ['--config', str(tmp_path / 'missing.yaml')])
        
        assert result.exit_code == 1
        assert "Configuration error" in result.output
    
    def test_missing_session_factory(self, tmp_path):
        """Test a config without a call session factory exits with an error."""
        config_path = tmp_path / 'config.yaml'
        config_path.write_text(f'recording:\n  directory: "{tmp_path}"\n')
        
        result = CliRunner().invoke(main, ['-c', str(config_path)])
        
        assert result.exit_code == 1
        assert "call.session_factory" in result.output
    
    def test_help(self):
        """Test the command documents its options."""
        result = CliRunner().invoke(main, ['--help'])
        
        assert result.exit_code == 0
        assert '--config' in result.output
