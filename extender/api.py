from __future__ import annotations

import logging
from typing import Any

from flask import Flask, Response, jsonify, request

from extender.dispatch import bind_pod, filter_nodes, prioritize_nodes
from extender.errors import EnvelopeError
from extender.policies import PolicyRegistry
from extender.protocol import ExtenderArgs, ExtenderBindingArgs, ExtenderFilterResult, ExtenderBindingResult

logger = logging.getLogger(__name__)

API_PREFIX = "/scheduler"
VERSION_PATH = "/version"
BIND_PATH = API_PREFIX + "/bind"
PREEMPTION_PATH = API_PREFIX + "/preemption"
PREDICATES_PREFIX = API_PREFIX + "/predicates"
PRIORITIES_PREFIX = API_PREFIX + "/priorities"


def create_app(registry: PolicyRegistry, version: str = "") -> Flask:
	app = Flask(__name__)
	app.config['policy_registry'] = registry
	app.config['extender_version'] = version

	@app.get(VERSION_PATH)
	def get_version() -> Any:
		return Response(app.config['extender_version'], mimetype="text/plain")

	@app.post(PREDICATES_PREFIX + "/<name>")
	def predicates(name: str) -> Any:
		predicate = app.config['policy_registry'].predicates.get(name)
		if predicate is None:
			return jsonify({"error": f"unknown predicate: {name}"}), 404
		try:
			args = ExtenderArgs.from_dict(request.get_json(force=True, silent=True))
		except EnvelopeError as e:
			logger.warning(f"Bad predicate request for {name}: {e}")
			return jsonify(ExtenderFilterResult(error=str(e)).to_dict())
		return jsonify(filter_nodes(predicate, args).to_dict())

	@app.post(PRIORITIES_PREFIX + "/<name>")
	def priorities(name: str) -> Any:
		priority = app.config['policy_registry'].priorities.get(name)
		if priority is None:
			return jsonify({"error": f"unknown priority: {name}"}), 404
		try:
			args = ExtenderArgs.from_dict(request.get_json(force=True, silent=True))
		except EnvelopeError as e:
			# a priority list has no error field to carry this
			logger.warning(f"Bad priority request for {name}: {e}")
			return jsonify({"error": str(e)}), 400
		return jsonify([p.to_dict() for p in prioritize_nodes(priority, args)])

	@app.post(BIND_PATH)
	def bind() -> Any:
		try:
			args = ExtenderBindingArgs.from_dict(request.get_json(force=True, silent=True))
		except EnvelopeError as e:
			logger.warning(f"Bad bind request: {e}")
			return jsonify(ExtenderBindingResult(error=str(e)).to_dict())
		return jsonify(bind_pod(app.config['policy_registry'].binder, args).to_dict())

	@app.post(PREEMPTION_PATH)
	def preemption() -> Any:
		return jsonify({"error": "preemption is not implemented by this extender"}), 501

	return app
