"""
Offline script: passenger survival with a small MLP.

Input:
    data/train.csv, data/test.csv

Output:
    results/submission.csv        (PassengerId, Survived)
    results/probabilities.csv     (PassengerId, Probability)
    results/survival_metrics.csv
    results/survival_roc.csv
    results/survival_history.csv
    models/survival_mlp.keras
"""

from mldemos.config import SURVIVAL_TEST_FILE, SURVIVAL_TRAIN_FILE
from mldemos.survival import SurvivalSession
from mldemos.utils_env import print_env_report, quiet_warnings, set_global_seed


# ---------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------
VAL_FRAC = 0.2
EPOCHS = 50
BATCH = 32
THRESHOLD = 0.5
ADD_FAMILY_FEATURES = False


# =====================================================================
# MAIN
# =====================================================================
def main():
    quiet_warnings()
    set_global_seed()
    print_env_report()

    session = SurvivalSession(
        val_frac=VAL_FRAC,
        epochs=EPOCHS,
        batch_size=BATCH,
        threshold=THRESHOLD,
        add_family_features=ADD_FAMILY_FEATURES,
    )

    print(f"\nLoading passengers from {SURVIVAL_TRAIN_FILE} and {SURVIVAL_TEST_FILE} ...")
    session.load(SURVIVAL_TRAIN_FILE, SURVIVAL_TEST_FILE)
    session.preprocess()

    print("\n[DL] MLP ...")
    session.build_model()
    session.train()

    session.evaluate()
    session.predict_test()
    session.export()


if __name__ == "__main__":
    main()
