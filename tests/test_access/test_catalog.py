from portal.access.catalog import find_customer, list_customers, sites_for_segment


def test_list_customers(access_config):
    customers = list_customers(access_config)
    assert [c.id for c in customers] == ["COMP_ENT_001", "COMP_HTL_001", "COMP_COL_001"]
    assert customers[0].segment == "enterprise"


def test_find_customer(access_config):
    assert find_customer(access_config, "COMP_HTL_001").name == "Grand Hospitality Group"
    assert find_customer(access_config, "missing") is None


def test_sites_for_segment(access_config):
    sites = sites_for_segment(access_config, "enterprise")
    assert [s.id for s in sites] == ["SITE-MUM-ENT-001", "SITE-DEL-ENT-002", "SITE-BLR-ENT-003"]
    assert sites[0].name == "Mumbai HQ"
    assert sites_for_segment(access_config, "unknown") == []
