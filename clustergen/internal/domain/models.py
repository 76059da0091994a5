from enum import Enum
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    CORE = "core"
    REPLICANT = "replicant"


class LoadBalanceStrategy(str, Enum):
    """HAProxy `balance` algorithms accepted for the data-plane pool."""
    ROUNDROBIN = "roundrobin"
    STATIC_RR = "static-rr"
    LEASTCONN = "leastconn"
    FIRST = "first"
    SOURCE = "source"
    RANDOM = "random"


class ClusterSpec(BaseModel):
    """Sole input of the topology generator. core_nodes <= total_nodes is checked by the validator."""
    model_config = ConfigDict(frozen=True)

    total_nodes: int = Field(ge=1)
    core_nodes: int = Field(ge=1)
    lb_strategy: LoadBalanceStrategy = LoadBalanceStrategy.ROUNDROBIN
    base_port: int = Field(default=10000, ge=0)


class NodeIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=1)
    name: str
    hostname: str
    cluster_node_id: str
    data_plane_port: int
    role: Role


class SeedList(BaseModel):
    """Core node ids, ascending by node index. One instance is shared by every node emission."""
    model_config = ConfigDict(frozen=True)

    members: Tuple[str, ...]

    def joined(self) -> str:
        return ",".join(self.members)

    def __len__(self) -> int:
        return len(self.members)


class GeneratedSecrets(BaseModel):
    model_config = ConfigDict(frozen=True)

    monitoring_password: str
    dashboard_password: str


class PerNodeServiceConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    service_name: str
    container_name: str
    hostname: str
    role: Role
    ports: List[str]
    aliases: List[str]
    environment: Dict[str, str]


class Backend(BaseModel):
    """One `server` line of an HAProxy listener."""
    model_config = ConfigDict(frozen=True)

    index: int
    name: str
    address: str
    port: int
    cookie: str = ""


class Listener(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    bind_port: int
    mode: str
    balance: str
    options: List[str] = Field(default_factory=list)
    timeouts: Dict[str, str] = Field(default_factory=dict)
    cookie: str = ""
    backends: List[Backend] = Field(default_factory=list)

    def node_indices(self) -> List[int]:
        return [backend.index for backend in self.backends]


class StatsEndpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    bind_port: int
    uri: str = "/stats"
    refresh: str = "10s"


class LoadBalancerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    data_plane: Listener
    admin: Listener
    stats: StatsEndpoint


class ScrapeTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    address: str


class ScrapeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    job_name: str
    scrape_interval: str
    evaluation_interval: str
    metrics_path: str
    targets: List[ScrapeTarget]

    def node_indices(self) -> List[int]:
        return [target.index for target in self.targets]


class CertificateBundle(BaseModel):
    model_config = ConfigDict(frozen=True)

    directory: str
    root_ca_key: str
    root_ca_cert: str
    node_key: str
    node_cert: str
    created: bool = False
