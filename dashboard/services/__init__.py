"""
services/ - Business logic for the dashboard

aggregation_service builds the enriched client list; client_mapper and
history_normalizer turn raw rows into canonical models; client_filters
derives what a view shows; contact_log_service writes provider actions.
"""
