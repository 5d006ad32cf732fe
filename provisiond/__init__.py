"""provisiond: REST daemon for the provisioning profile index."""
