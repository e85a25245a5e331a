import importlib

from pkcegate import main as entry_point


class TestModuleEntryPoint:
    def test_python_m_runs_main(self):
        # Act
        module = importlib.import_module("pkcegate.__main__")

        # Assert
        assert module.main is entry_point.main
