"""Test environment-variable source binding."""

from unittest.mock import patch

from confstack.env_source import EnvironmentSource


class TestKeyFor:
    """Test variable name to dotted key mapping."""

    def test_no_prefix(self):
        source = EnvironmentSource()
        assert source.key_for("DATABASE__HOST") == "database.host"
        assert source.key_for("DEBUG") == "debug"

    def test_prefix(self):
        source = EnvironmentSource("APP")
        assert source.key_for("APP__DATABASE__HOST") == "database.host"
        assert source.key_for("app__debug") == "debug"

    def test_prefix_mismatch(self):
        source = EnvironmentSource("app")
        assert source.key_for("OTHER__DEBUG") is None
        assert source.key_for("APPLICATION__DEBUG") is None
        assert source.key_for("APP_DEBUG") is None

    def test_single_underscore_kept(self):
        assert EnvironmentSource().key_for("LOG_LEVEL") == "log_level"

    def test_empty_segments_skipped(self):
        source = EnvironmentSource("app")
        assert source.key_for("APP__") is None
        assert source.key_for("APP__A____B") is None
        assert source.key_for("APP__A__") is None


class TestParseValue:
    def test_list_key_split(self):
        source = EnvironmentSource(list_parse_keys=["hosts"])
        assert source.parse_value("hosts", "a,b,c") == ["a", "b", "c"]

    def test_non_list_key_scalar(self):
        source = EnvironmentSource(list_parse_keys=["hosts"])
        assert source.parse_value("other", "a,b,c") == "a,b,c"

    def test_no_trimming(self):
        source = EnvironmentSource(list_parse_keys=["hosts"])
        assert source.parse_value("hosts", "a, b") == ["a", " b"]

    def test_empty_value(self):
        source = EnvironmentSource(list_parse_keys=["hosts"])
        assert source.parse_value("hosts", "") == [""]

    def test_list_keys_case_insensitive(self):
        source = EnvironmentSource(list_parse_keys=["Server.Hosts"])
        assert source.list_parse_keys == frozenset({"server.hosts"})


class TestCollect:
    """Test building the nested mapping."""

    def test_nested(self):
        # Arrange
        source = EnvironmentSource("app", ["server.hosts"])
        environ = {
            "APP__SERVER__PORT": "8080",
            "APP__SERVER__HOSTS": "a,b,c",
            "APP__NAME": "x,y",
            "UNRELATED": "1",
        }

        # Act
        tree = source.collect(environ)

        # Assert
        assert tree == {"server": {"port": "8080", "hosts": ["a", "b", "c"]}, "name": "x,y"}

    def test_nested_beats_leaf(self):
        environ = {"APP__DB": "scalar", "APP__DB__HOST": "h"}
        assert EnvironmentSource("app").collect(environ) == {"db": {"host": "h"}}

    def test_no_prefix_takes_everything(self):
        assert EnvironmentSource().collect({"A": "1", "B__C": "2"}) == {"a": "1", "b": {"c": "2"}}

    def test_reads_process_environment(self):
        with patch.dict("os.environ", {"APP__X": "1"}, clear=True):
            assert EnvironmentSource("app").collect() == {"x": "1"}
