import datetime
import os
import time

import numpy as np
import pandas as pd
from sklearn.datasets import make_blobs
from tqdm import tqdm

# Data and algebra
from algebra.euclidean import ArrayEuclideanSpace
from data.dataset import IndexedDataSet
from data.parser import load_arff_data_set

# Utilities
from utils.clustering_metrics import (
    cluster_f1_measure,
    compute_clustering_metrics,
    partition_coefficient,
    partition_entropy,
    xie_beni_index,
)
from utils.logging_utils import configure_logger, log_error, log_info

# Algorithms
from algorithms.ball_tree_fcm import BallTreeFuzzyCMeans
from algorithms.dbscan import DBScan
from algorithms.dist_adapted_fcm import DistAdaptedFCM
from algorithms.fuzzy_c_means import FuzzyCMeans, FuzzyCMeansNoise
from algorithms.gmm_clustering import ExpectationMaximizationSGMM, run_reference_gmm_once
from algorithms.kmeans import HardCMeans
from algorithms.polynomial_fcm import PolynomialFCM
from algorithms.rewarding_crisp_fcm import RewardingCrispFCM
from algorithms.voronoi_fcm import VoronoiPartitionFCM

# ---------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------
RUN_CONFIG = {
    "datasets": {
        "blobs": True,
        "pen-based": False,
        "mushroom": False
    },
    "algorithms": {
        "HCM": True,
        "FCM": True,
        "FCM_Noise": True,
        "PolynomialFCM": True,
        "DistAdaptedFCM": True,
        "RewardingCrispFCM": True,
        "VoronoiFCM": True,
        "BallTreeFCM": True,
        "EM_SGMM": True,
        "HCM_to_FCM": True,  # two stage pipeline
        "DBSCAN": True,
        "Reference_GMM": True
    },
    "log_level": "INFO"
}

DATASETS_MAP = {
    "pen-based": "datasets/pen-based.arff",
    "mushroom": "datasets/mushroom.arff",
}

BLOBS_PARAMS = {"n_samples": 600, "centers": 4, "n_features": 2, "cluster_std": 0.6, "random_state": 7}

# Global Parameters
N_CLUSTERS_LIST = [3, 4, 5]
N_RUNS = 3
EPSILON = 1e-4
MAX_STEPS = 300

# Variant Params
FUZZY_M = [1.5, 2.0, 3.0]
BETAS = [0.2, 0.5]
DISTANCE_MULTIPLIERS = [0.5, 0.9]
NOISE_DISTANCES = [0.5, 1.0]
INTERVAL_LENGTHS = [0.0, 0.05, 0.2]
CORE_DISTANCES = [0.5, 1.0]
CORE_COUNT = 4

PARTIAL_SAVE_INTERVAL = 10

FUZZY_TYPES = {
    "FCM": FuzzyCMeans,
    "FCM_Noise": FuzzyCMeansNoise,
    "PolynomialFCM": PolynomialFCM,
    "DistAdaptedFCM": DistAdaptedFCM,
    "RewardingCrispFCM": RewardingCrispFCM,
    "VoronoiFCM": VoronoiPartitionFCM,
    "BallTreeFCM": BallTreeFuzzyCMeans,
}


# ---------------------------------------------------------
# HELPER & MAIN
# ---------------------------------------------------------
def generate_task_list():
    tasks = []
    algos = RUN_CONFIG["algorithms"]
    for ds_name, ds_enabled in RUN_CONFIG["datasets"].items():
        if not ds_enabled:
            continue

        if algos["DBSCAN"]:
            for core_distance in CORE_DISTANCES:
                tasks.append({"dataset": ds_name, "n_clusters": None, "run_id": 0, "type": "density",
                              "algo_name": "DBSCAN",
                              "params": {"core_distance": core_distance, "core_count": CORE_COUNT}})

        for k in N_CLUSTERS_LIST:
            for seed in range(N_RUNS):
                base = {"dataset": ds_name, "n_clusters": k, "run_id": seed}

                if algos["HCM"]:
                    tasks.append({**base, "type": "crisp", "algo_name": "HCM", "params": {}})
                if algos["EM_SGMM"]:
                    tasks.append({**base, "type": "em", "algo_name": "EM_SGMM", "params": {}})
                if algos["Reference_GMM"]:
                    tasks.append({**base, "type": "reference", "algo_name": "Reference_GMM", "params": {}})
                if algos["HCM_to_FCM"]:
                    tasks.append({**base, "type": "pipeline", "algo_name": "HCM_to_FCM", "params": {}})

                if algos["FCM"]:
                    for m in FUZZY_M:
                        tasks.append({**base, "type": "fuzzy", "algo_name": "FCM", "params": {"fuzzifier": m}})
                if algos["FCM_Noise"]:
                    for noise in NOISE_DISTANCES:
                        tasks.append({**base, "type": "fuzzy", "algo_name": "FCM_Noise",
                                      "params": {"noise_distance": noise}})
                if algos["PolynomialFCM"]:
                    for beta in BETAS:
                        tasks.append({**base, "type": "fuzzy", "algo_name": "PolynomialFCM",
                                      "params": {"beta": beta}})
                if algos["DistAdaptedFCM"]:
                    tasks.append({**base, "type": "fuzzy", "algo_name": "DistAdaptedFCM", "params": {}})
                if algos["RewardingCrispFCM"]:
                    for a in DISTANCE_MULTIPLIERS:
                        tasks.append({**base, "type": "fuzzy", "algo_name": "RewardingCrispFCM",
                                      "params": {"distance_multiplier_constant": a}})
                if algos["VoronoiFCM"]:
                    tasks.append({**base, "type": "fuzzy", "algo_name": "VoronoiFCM", "params": {}})
                if algos["BallTreeFCM"]:
                    for length in INTERVAL_LENGTHS:
                        tasks.append({**base, "type": "fuzzy", "algo_name": "BallTreeFCM",
                                      "params": {"maximal_interval_length": length}})
    return tasks


def load_data(ds_name):
    """Returns ``(data_set, X, y)`` for a configured data set."""
    if ds_name == "blobs":
        X, y = make_blobs(**BLOBS_PARAMS)
        return IndexedDataSet.from_array(X), X, y
    data_set, y, _info = load_arff_data_set(DATASETS_MAP[ds_name])
    return data_set, np.array(data_set.elements()), y


def fuzzy_summary(algorithm, X):
    u = algorithm.all_fuzzy_cluster_assignments()
    return u, {
        "partition_coefficient": partition_coefficient(u),
        "partition_entropy": partition_entropy(u),
        "xie_beni": xie_beni_index(list(X), algorithm.prototype_positions(), u, algorithm.metric,
                                   getattr(algorithm, "fuzzifier", 2.0)),
    }


def run_task(task, data_set, X, y):
    vs = ArrayEuclideanSpace(X.shape[1])
    common = {"epsilon": EPSILON, "monitor_objective_function_values": False}
    res = {"dataset": task["dataset"], "algorithm": task["algo_name"], "n_clusters": task["n_clusters"],
           "run_id": task["run_id"]}
    res.update({f"param_{name}": value for name, value in task["params"].items()})

    if task["type"] == "reference":
        ref = run_reference_gmm_once(X, task["n_clusters"], task["dataset"], random_state=task["run_id"])
        res.update({"bic": ref["bic"], "avg_log_likelihood": ref["avg_log_likelihood"], "labels": ref["labels"]})
        return res

    if task["type"] == "density":
        dbscan = DBScan(data_set, vs, **task["params"])
        dbscan.apply()
        res.update({"clusters_found": dbscan.cluster_count, "labels": dbscan.all_crisp_cluster_assignments()})
        return res

    if task["type"] == "crisp":
        algorithm = HardCMeans(data_set, vs, **common)
    elif task["type"] == "em":
        algorithm = ExpectationMaximizationSGMM(data_set, vs, **common)
    elif task["type"] == "pipeline":
        algorithm = HardCMeans(data_set, vs, **common)
    else:
        algorithm = FUZZY_TYPES[task["algo_name"]](data_set, vs, **task["params"], **common)

    algorithm.initialize_randomly(task["n_clusters"], random_state=task["run_id"])
    algorithm.apply(MAX_STEPS)

    if task["type"] == "pipeline":
        res["stage_one_iterations"] = algorithm.iteration_count
        algorithm = FuzzyCMeans.from_algorithm(algorithm)
        algorithm.apply(MAX_STEPS)

    res["iterations"] = algorithm.iteration_count
    res["objective"] = algorithm.objective_function_value()
    res["labels"] = algorithm.all_crisp_cluster_assignments()
    if task["type"] == "em":
        res["log_likelihood"] = algorithm.log_likelihood()
    if task["type"] in ("fuzzy", "pipeline", "em"):
        u, summary = fuzzy_summary(algorithm, X)
        res.update(summary)
        if y is not None:
            res["cluster_f1"] = cluster_f1_measure(y, u)
    return res


def save_dataframe(data, folder, filename):
    if isinstance(data, pd.DataFrame):
        if data.empty:
            return
        df_to_save = data
    elif not data:
        return
    else:
        df_to_save = pd.DataFrame(data)

    os.makedirs(folder, exist_ok=True)
    df_to_save.to_csv(os.path.join(folder, filename), index=False)


def main():
    configure_logger(RUN_CONFIG["log_level"])
    session_id = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    base_dir = f"results/run_{session_id}"
    dirs = [base_dir, os.path.join(base_dir, "partial"), os.path.join(base_dir, "by_dataset")]
    for d in dirs:
        os.makedirs(d, exist_ok=True)

    log_info("runner started", session=session_id)
    all_tasks = generate_task_list()

    global_results = []
    current_ds_results = []
    current_ds_name = None
    data_set, X, y = None, None, None

    pbar = tqdm(all_tasks, unit="exp")

    for i, task in enumerate(pbar):
        ds_name = task["dataset"]
        pbar.set_description(f"{ds_name} | {task['algo_name']} | k={task['n_clusters']}")

        # 1. Load Data if Dataset Changed
        if ds_name != current_ds_name:
            if current_ds_name and current_ds_results:
                save_dataframe(current_ds_results, dirs[2], f"{current_ds_name}_results.csv")
                current_ds_results = []
            try:
                data_set, X, y = load_data(ds_name)
                current_ds_name = ds_name
            except (OSError, ValueError) as e:
                log_error("could not load data set", dataset=ds_name, error=str(e))
                continue

        # 2. Run Algorithm
        start = time.perf_counter()
        try:
            res = run_task(task, data_set, X, y)
        except (ValueError, ArithmeticError) as e:
            log_error("task failed", task=task["algo_name"], dataset=ds_name, error=str(e))
            continue
        res["runtime"] = time.perf_counter() - start

        # 3. Metrics
        if y is not None:
            res.update(compute_clustering_metrics(X, y, res["labels"]))
        del res["labels"]

        global_results.append(res)
        current_ds_results.append(res)

        if (i + 1) % PARTIAL_SAVE_INTERVAL == 0:
            save_dataframe(global_results, dirs[1], f"partial_{session_id}.csv")

    if current_ds_results:
        save_dataframe(current_ds_results, dirs[2], f"{current_ds_name}_results.csv")
    if global_results:
        pd.DataFrame(global_results).to_csv(os.path.join(base_dir, "results_final.csv"), index=False)
        log_info("run complete", results=base_dir, experiments=len(global_results))


if __name__ == "__main__":
    main()
