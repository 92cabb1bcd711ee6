# utils/constants.py

# --- Top-Level Result Directories ---
# Sequentially numbered for proper sorting with clear, self-explanatory names

CONFIG_DIR = "01_RunConfiguration"              # Run config, metadata, seeds
DATA_QUALITY_DIR = "02_DataQualityChecks"       # Loading checks, gene/label summaries
FOLD_ASSIGNMENT_DIR = "03_FoldAssignment"       # Sample index -> fold id
GRID_SEARCH_DIR = "04_GridSearch"               # Result tables and fit failures per model
FINAL_MODEL_DIR = "05_FinalModels"              # Refit models, metadata, convergence curves
PREDICTIONS_DIR = "06_Predictions"              # Held-out (Id, Predicted) tables
COMPARISON_DIR = "07_ModelComparison"           # Cross-model summary

# Canonical list used when building the base results structure (in order).
TOP_LEVEL_RESULT_DIRS = [
    CONFIG_DIR,
    DATA_QUALITY_DIR,
    FOLD_ASSIGNMENT_DIR,
    GRID_SEARCH_DIR,
    FINAL_MODEL_DIR,
    PREDICTIONS_DIR,
    COMPARISON_DIR,
]

# --- File Names ---
CONFIG_USED_FILE = "config_used.json"
CONFIG_HASH_FILE = "config_hash.txt"
RUN_METADATA_FILE = "run_metadata.json"
FOLD_ASSIGNMENT_FILE = "fold_assignment.csv"
GENE_SUMMARY_FILE = "gene_summary.csv"
LABEL_SUMMARY_FILE = "label_summary.csv"
COMPARISON_FILE = "model_comparison.csv"
FOLD_CONSISTENCY_FILE = "fold_consistency.csv"
RUN_SUMMARY_FILE = "run_summary.json"

# Per-model file name templates
GRID_RESULTS_TEMPLATE = "{model}_grid_results.csv"
FIT_FAILURES_TEMPLATE = "{model}_fit_failures.csv"
BEST_POINT_TEMPLATE = "{model}_best_point.json"
MODEL_FILE_TEMPLATE = "{model}_final_model.pkl"
MODEL_METADATA_TEMPLATE = "{model}_metadata.json"
CONVERGENCE_TEMPLATE = "{model}_convergence.csv"
PREDICTIONS_TEMPLATE = "{model}_predictions.csv"

# --- Result Table Columns ---
TRAIN_RMSE_COL = "trainRMSE"
VALID_RMSE_COL = "validRMSE"
STATUS_COL = "status"
OK_FOLDS_COL = "okFolds"
FAILED_FOLDS_COL = "failedFolds"
POINT_INDEX_COL = "point"

STATUS_OK = "ok"
STATUS_UNAVAILABLE = "unavailable"

# --- Prediction Table Columns ---
ID_COL = "Id"
PREDICTED_COL = "Predicted"

# --- Failure Policies ---
FAILURE_POLICY_SKIP = "skip"
FAILURE_POLICY_ABORT = "abort"
FAILURE_POLICIES = (FAILURE_POLICY_SKIP, FAILURE_POLICY_ABORT)
