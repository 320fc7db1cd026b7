import os
from celery import Celery, Task
from flask import has_app_context

_flask_app = None


def _get_flask_app():
    global _flask_app
    if _flask_app is None:
        from .. import create_app
        _flask_app = create_app()
    return _flask_app


class FlaskTask(Task):
    """Run every task inside a Flask app context (db session, config)."""

    abstract = True

    def __call__(self, *args, **kwargs):
        if has_app_context():
            return self.run(*args, **kwargs)
        with _get_flask_app().app_context():
            return self.run(*args, **kwargs)


def make_celery() -> Celery:
    broker = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    backend = os.getenv("CELERY_RESULT_BACKEND", broker)
    app = Celery("triage", broker=broker, backend=backend, task_cls=FlaskTask, include=[
        "triage.tasks.jobs.matching",
    ])
    app.conf.update(task_track_started=True, task_acks_late=True)
    return app

celery_app = make_celery()
