import logging

import logging_setup


def test_configure_logging_is_idempotent(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setattr(logging_setup.configure_logging, "_configured", False, raising=False)
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        logging_setup.configure_logging()
        logging_setup.configure_logging()
        added = [h for h in root.handlers if h not in before]
        assert len(added) == 1
        assert root.level == logging.DEBUG
    finally:
        for h in root.handlers[:]:
            if h not in before:
                root.removeHandler(h)
        root.setLevel(level)


def test_json_formatter_emits_one_object_per_record():
    record = logging.LogRecord("phrase_catalog", logging.INFO, __file__, 1, "Loaded %d phrases", (3,), None)
    line = logging_setup._JsonFormatter().format(record)
    assert '"msg": "Loaded 3 phrases"' in line
    assert '"logger": "phrase_catalog"' in line
