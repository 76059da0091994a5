# clustergen/constants.py

# Node naming: n<index>.local / node@n<index>.local
HOSTNAME_PREFIX = "n"
HOSTNAME_DOMAIN = "local"
NODE_NAME = "node"

# Ports inside every broker container
DATA_PLANE_PORT = 1883
DASHBOARD_PORT = 18083
METRICS_PORT = 9100
METRICS_PATH = "/metrics"

# Ports published on the host by the load balancer and monitoring services
LB_DATA_PLANE_PORT = 1883
LB_DASHBOARD_PORT = 18083
LB_STATS_PORT = 8404
PROMETHEUS_PORT = 9090
GRAFANA_PORT = 3000

RESERVED_PORTS = {
    "load balancer data plane": LB_DATA_PLANE_PORT,
    "dashboard": LB_DASHBOARD_PORT,
    "stats": LB_STATS_PORT,
    "metrics": METRICS_PORT,
    "prometheus": PROMETHEUS_PORT,
    "grafana": GRAFANA_PORT,
}

# Broker environment
BROKER_ENV_PREFIX = "BROKER_"
BROKER_HOME = "/opt/broker"
BROKER_CERT_DIR = f"{BROKER_HOME}/etc/certs"
BROKER_START_COMMAND = [f"{BROKER_HOME}/bin/broker", "foreground"]
DB_BACKEND = "rlog"
DISCOVERY_STRATEGY = "static"
BROKER_LOG_LEVELS = ("debug", "info", "notice", "warning", "error", "critical", "alert", "emergency")

# TLS
BACKPLANE_HOSTNAME = "backplane"
ROOT_CA_KEY = "ca.key"
ROOT_CA_CERT = "ca.pem"
NODE_KEY = "node.key"
NODE_CSR = "node.csr"
NODE_CERT = "node.pem"

# Monitoring
SCRAPE_JOB_NAME = "broker"
SCRAPE_INTERVAL = "15s"
HAPROXY_IMAGE = "haproxy:2.8"
PROMETHEUS_IMAGE = "prom/prometheus:latest"
GRAFANA_IMAGE = "grafana/grafana:latest"

# Generated files (relative to the output directory)
COMPOSE_FILE = "docker-compose.yml"
HAPROXY_CONF_FILE = "haproxy.cfg"
PROMETHEUS_CONF_FILE = "prometheus.yml"
GRAFANA_DATASOURCE_FILE = "grafana-datasource.yml"
DOCKERFILE = "Dockerfile"
DOCKERIGNORE = ".dockerignore"
ENV_FILE = "broker.env"
NETWORK_NAME = "backplane"

DEFAULT_BASE_IMAGE = "debian:12-slim"
OS_RELEASE_PATH = "/etc/os-release"
