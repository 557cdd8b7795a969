"""League prediction scoring: persistence models and the evaluation core."""
