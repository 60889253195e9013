"""Pod list/watch consumer keeping the PodNodeIndex warm."""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional, Tuple

from kubernetes import client, config, watch
from kubernetes.client.exceptions import ApiException

from extender.errors import PodDecodeError, StartupError
from extender.index import PodNodeIndex
from extender.models import Pod

logger = logging.getLogger(__name__)

DEFAULT_RESYNC_INTERVAL_S = 24 * 60 * 60
DEFAULT_WATCH_TIMEOUT_S = 300
ERROR_BACKOFF_S = 5.0


def load_core_api(kubeconfig: Optional[str] = None) -> client.CoreV1Api:
	"""Resolve cluster credentials; in-cluster first unless a kubeconfig is given."""
	try:
		if kubeconfig:
			config.load_kube_config(config_file=kubeconfig)
			logger.info(f"Loaded kubeconfig from {kubeconfig}")
		else:
			try:
				config.load_incluster_config()
				logger.info("Loaded in-cluster Kubernetes config")
			except config.ConfigException:
				config.load_kube_config()
				logger.info("Loaded kubeconfig")
	except Exception as e:
		raise StartupError(f"Could not load Kubernetes config: {e}") from e
	return client.CoreV1Api()


class PodSource(ABC):
	"""Where pod listings and watch events come from."""

	@abstractmethod
	def list_pods(self) -> Tuple[List[Any], str]:
		"""Return (pod objects, resource version of the listing)."""
		raise NotImplementedError

	@abstractmethod
	def watch(self, resource_version: str, timeout_seconds: int) -> Iterator[Dict[str, Any]]:
		"""Yield ``{"type": ..., "object": ...}`` events after resource_version."""
		raise NotImplementedError

	def stop(self) -> None:
		pass


class KubernetesPodSource(PodSource):
	"""Pods across all namespaces from the cluster API."""

	def __init__(self, core_api: client.CoreV1Api) -> None:
		self.core = core_api
		self._watch: Optional[watch.Watch] = None

	def list_pods(self) -> Tuple[List[Any], str]:
		resp = self.core.list_pod_for_all_namespaces()
		return list(resp.items or []), resp.metadata.resource_version or ""

	def watch(self, resource_version: str, timeout_seconds: int) -> Iterator[Dict[str, Any]]:
		self._watch = watch.Watch()
		return self._watch.stream(
			self.core.list_pod_for_all_namespaces,
			resource_version=resource_version,
			timeout_seconds=timeout_seconds,
			allow_watch_bookmarks=True,
		)

	def stop(self) -> None:
		if self._watch is not None:
			self._watch.stop()


class ResyncRequired(Exception):
	"""The watch cannot continue from its resource version."""


class PodWatcher:
	"""
	Applies pod events to the index from a background thread.

	Lists all pods, swaps the listing into the index, then watches from the
	listing's resource version. A full re-list happens when the resync
	interval elapses or the watch position expires. Objects that cannot be
	decoded as pods are logged and skipped.
	"""

	def __init__(
		self,
		index: PodNodeIndex,
		source: PodSource,
		resync_interval_s: float = DEFAULT_RESYNC_INTERVAL_S,
		watch_timeout_s: int = DEFAULT_WATCH_TIMEOUT_S,
		error_backoff_s: float = ERROR_BACKOFF_S,
	) -> None:
		self.index = index
		self.source = source
		self.resync_interval_s = resync_interval_s
		self.watch_timeout_s = watch_timeout_s
		self.error_backoff_s = error_backoff_s

		self._thread: Optional[threading.Thread] = None
		self._stop_event = threading.Event()
		self.skipped_events = 0

	def start(self) -> None:
		if self._thread and self._thread.is_alive():
			logger.warning("PodWatcher already running")
			return
		self._stop_event.clear()
		self._thread = threading.Thread(target=self._run, name="pod-watcher", daemon=True)
		self._thread.start()
		logger.info("PodWatcher started")

	def stop(self) -> None:
		self._stop_event.set()
		self.source.stop()
		if self._thread:
			self._thread.join(timeout=5.0)
		logger.info("PodWatcher stopped")

	def wait_for_sync(self, timeout: Optional[float] = None) -> bool:
		return self.index.await_initial_sync(timeout)

	def _run(self) -> None:
		while not self._stop_event.is_set():
			try:
				resource_version = self.relist()
				deadline = time.monotonic() + self.resync_interval_s
				while not self._stop_event.is_set():
					remaining = deadline - time.monotonic()
					if remaining <= 0:
						logger.info("Resync interval elapsed, re-listing pods")
						break
					timeout = max(1, int(min(self.watch_timeout_s, remaining)))
					resource_version = self.watch_once(resource_version, timeout)
			except ResyncRequired as e:
				logger.info(f"Watch restarting from a fresh listing: {e}")
			except ApiException as e:
				if e.status == 410:
					logger.info("Watch resource version expired, re-listing pods")
					continue
				logger.error(f"Pod list/watch failed: {e}")
				self._stop_event.wait(self.error_backoff_s)
			except Exception as e:
				logger.error(f"Pod list/watch failed: {e}")
				self._stop_event.wait(self.error_backoff_s)

	def relist(self) -> str:
		"""Replace the index content with a fresh listing."""
		items, resource_version = self.source.list_pods()
		pods = []
		for obj in items:
			try:
				pods.append(Pod.from_k8s(obj))
			except PodDecodeError as e:
				self.skipped_events += 1
				logger.warning(f"Skipping undecodable object in pod listing: {e}")
		self.index.replace(pods)
		logger.debug(f"Listed {len(pods)} pods at resourceVersion {resource_version}")
		return resource_version

	def watch_once(self, resource_version: str, timeout_seconds: int) -> str:
		"""Apply one watch stream; return the last resource version seen."""
		for event in self.source.watch(resource_version, timeout_seconds):
			if self._stop_event.is_set():
				break
			etype = event.get("type")
			obj = event.get("object")
			if etype == "ERROR":
				raise ResyncRequired(f"watch error event: {_error_message(obj)}")

			resource_version = _resource_version(obj) or resource_version
			if etype == "BOOKMARK":
				continue

			try:
				pod = Pod.from_k8s(obj)
			except PodDecodeError as e:
				self.skipped_events += 1
				logger.warning(f"Skipping undecodable {etype} event: {e}")
				continue

			if etype in ("ADDED", "MODIFIED"):
				self.index.upsert(pod)
			elif etype == "DELETED":
				self.index.delete(pod)
			else:
				logger.warning(f"Ignoring unknown watch event type {etype!r} for {pod.key}")
		return resource_version


def _resource_version(obj: Any) -> Optional[str]:
	if isinstance(obj, dict):
		return (obj.get("metadata") or {}).get("resourceVersion")
	metadata = getattr(obj, "metadata", None)
	return getattr(metadata, "resource_version", None) if metadata is not None else None


def _error_message(obj: Any) -> str:
	if isinstance(obj, dict):
		return str(obj.get("message") or obj)
	return str(getattr(obj, "message", obj))
