from .celery import celery_app

# 'from hms_project import *' only exports celery_app
__all__ = ("celery_app",)

""" Celery workers are started with "celery -A hms_project worker -l info".
    -A hms_project imports this package, which exposes celery_app. """
