# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Kubernetes API access for pod discovery.

The rest of the package only needs one capability from the control plane:
list pods by namespace and label selector. PodLister names that capability,
KubernetesPodLister provides it on top of the official kubernetes client.

Example:
    >>> lister = KubernetesPodLister.from_environment(request_timeout=5.0)
    >>> members = await lister.list_pods("default", "app=raft")
    >>> [m.name for m in members]
    ['raft-0', 'raft-1', 'raft-2']
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from kubernetes import client
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException

from kubediscovery.cluster.models import MemberPod
from kubediscovery.exceptions import ConfigurationError, DiscoveryUnavailable
from kubediscovery.utils.logger import logger


class PodLister(ABC):
    """Lists pods matching a namespace and a label selector."""

    @abstractmethod
    async def list_pods(self, namespace: str, label_selector: str) -> List[MemberPod]:
        """List pods currently matching the filter.

        Args:
            namespace: Namespace to search, "" for all namespaces
            label_selector: Kubernetes label selector, passed through unparsed

        Returns:
            Members in API order, without duplicate (namespace, name) pairs

        Raises:
            DiscoveryUnavailable: If the pods could not be listed
        """


class KubernetesPodLister(PodLister):
    """PodLister backed by the Kubernetes CoreV1 API.

    The kubernetes client is blocking, so every call is pushed to a worker
    thread. Each call carries a request timeout so an unreachable API server
    cannot stall the caller indefinitely.
    """

    def __init__(
        self,
        api: Optional[client.CoreV1Api] = None,
        request_timeout: Optional[float] = 5.0,
    ) -> None:
        self._api = api or client.CoreV1Api()
        self.request_timeout = request_timeout

    @classmethod
    def from_environment(cls, request_timeout: Optional[float] = 5.0) -> "KubernetesPodLister":
        """Build a lister from in-cluster credentials, or the local kubeconfig.

        Raises:
            ConfigurationError: If neither configuration source can be loaded
        """
        try:
            k8s_config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes configuration")
        except Exception as incluster_error:
            logger.debug(f"In-cluster configuration unavailable: {incluster_error}")
            try:
                k8s_config.load_kube_config()
                logger.info("Loaded Kubernetes configuration from kubeconfig")
            except Exception as e:
                logger.error(
                    f"error while setting up Kubernetes client config. Reason={e}"
                )
                raise ConfigurationError(
                    f"Cannot load Kubernetes configuration: {e}"
                ) from e

        return cls(api=client.CoreV1Api(), request_timeout=request_timeout)

    async def list_pods(self, namespace: str, label_selector: str) -> List[MemberPod]:
        try:
            pod_list = await asyncio.to_thread(self._list, namespace, label_selector)
            return _unique_members(pod_list.items)
        except ApiException as e:
            raise DiscoveryUnavailable(
                namespace,
                label_selector,
                f"Kubernetes API error ({e.status}): {e.reason}",
            ) from e
        except Exception as e:
            raise DiscoveryUnavailable(namespace, label_selector, str(e)) from e

    def _list(self, namespace: str, label_selector: str) -> Any:
        kwargs: Dict[str, Any] = {"label_selector": label_selector}
        if self.request_timeout:
            kwargs["_request_timeout"] = self.request_timeout

        if namespace:
            return self._api.list_namespaced_pod(namespace, **kwargs)
        return self._api.list_pod_for_all_namespaces(**kwargs)


def _unique_members(pods: List[Any]) -> List[MemberPod]:
    """Convert API pods to members, dropping repeated (namespace, name) pairs."""
    seen: Dict[Tuple[str, str], MemberPod] = {}
    for pod in pods:
        member = MemberPod.from_pod(pod)
        if member.key in seen:
            logger.debug(f"Skipping duplicate pod {member.namespace}/{member.name}")
            continue
        seen[member.key] = member
    return list(seen.values())
