from __future__ import annotations

import logging
import sys
from typing import Optional

from flask import Flask

from extender.api import create_app
from extender.config import Settings, configure_logging
from extender.errors import StartupError
from extender.index import PodNodeIndex
from extender.policies import default_registry
from extender.watcher import KubernetesPodSource, PodWatcher, load_core_api

logger = logging.getLogger(__name__)


def build_app(settings: Optional[Settings] = None) -> Flask:
	"""Start the pod watcher, wait for the first listing, and build the Flask app."""
	settings = settings or Settings.from_env()
	configure_logging(settings.log_level)

	core = load_core_api(settings.kubeconfig)
	index = PodNodeIndex()
	watcher = PodWatcher(
		index,
		KubernetesPodSource(core),
		resync_interval_s=settings.resync_interval_s,
		watch_timeout_s=settings.watch_timeout_s,
	)
	watcher.start()

	logger.info("Waiting for the initial pod listing")
	if not watcher.wait_for_sync(settings.sync_timeout_s or None):
		raise StartupError(f"Pod index not synced after {settings.sync_timeout_s}s")
	logger.info(f"Pod index synced: {len(index)} active pods")

	app = create_app(default_registry(index), version=settings.version)
	app.config['pod_index'] = index
	app.config['pod_watcher'] = watcher
	app.config['settings'] = settings
	return app


def main() -> None:
	settings = Settings.from_env()
	try:
		app = build_app(settings)
	except StartupError as e:
		logger.critical(str(e))
		sys.exit(1)
	logger.info(f"server starting on {settings.host}:{settings.port}")
	app.run(host=settings.host, port=settings.port, threaded=True)


if __name__ == "__main__":
	main()
