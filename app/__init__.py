"""HTTP service for DataStage DSX extraction."""
