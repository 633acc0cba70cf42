"""
Unit tests for engine creation.
"""
from decision_os.database import create_db_engine


class TestCreateDbEngine:

    def test_sqlite_file_folder_is_created(self, tmp_path):
        path = tmp_path / "state" / "decision_os.db"

        engine = create_db_engine(f"sqlite:///{path}")

        assert path.parent.is_dir()
        assert engine.url.get_backend_name() == "sqlite"
        engine.dispose()

    def test_in_memory_sqlite(self):
        engine = create_db_engine("sqlite:///:memory:")

        assert engine.url.database == ":memory:"
        engine.dispose()
