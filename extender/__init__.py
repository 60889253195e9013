"""
Scheduler extender package.

Modules:
- models: pod and node views decoded from the cluster API and callback payloads
- resources: request accounting over indexed pods
- index: node-indexed cache of active pods
- watcher: pod list/watch consumer feeding the index
- policies: always_true predicate, group_score priority, bind refusal
- protocol: extender request/response envelopes
- dispatch: runs a named policy over a decoded request
- api: HTTP surface for the scheduler callbacks
- config: settings and logging setup
"""
